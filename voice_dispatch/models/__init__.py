"""
Models module for data structures and state management in the dispatch bridge.

This module provides the wire schemas for both legs of a bridged call and the
value types the bridge passes between its components.

Key components:
- telephony_events: Pydantic models for the telephony media-stream protocol
  (start, media, stop and a catch-all for everything else).
- realtime_events: Pydantic models for the OpenAI Realtime API events the bridge
  receives and sends.
- business_config: The immutable business configuration snapshot and the function
  that merges it from the company settings and agent configuration records.
- appointment: The arguments of the schedule_appointment and lookup_client
  function calls.
- call_session: Per-call state and the registry of active sessions.

Usage examples:
```python
from voice_dispatch.models.telephony_events import parse_telephony_event, StartEvent

event = parse_telephony_event({"event": "start", "stream_id": "abc"})
assert isinstance(event, StartEvent) and event.call_id == "abc"

from voice_dispatch.models.business_config import merge_business_config

config = merge_business_config({"company_name": "Acme HVAC"}, None)
```
"""

from voice_dispatch.models.appointment import AppointmentRequest, ClientLookupRequest
from voice_dispatch.models.business_config import BusinessConfig, DayHours, merge_business_config
from voice_dispatch.models.call_session import (
    CallSession,
    CallStatus,
    SessionManager,
    SessionState,
)
from voice_dispatch.models.realtime_events import (
    AIRealtimeEvent,
    AudioDeltaEvent,
    FunctionCallArgumentsDoneEvent,
    SessionUpdateEvent,
    UnknownRealtimeEvent,
    parse_realtime_event,
)
from voice_dispatch.models.telephony_events import (
    MediaEvent,
    StartEvent,
    StopEvent,
    TelephonyStreamEvent,
    UnknownTelephonyEvent,
    parse_telephony_event,
)
