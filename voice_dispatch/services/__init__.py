"""
Services module for external integrations of the dispatch bridge.

This module provides the pieces of the bridge that talk to the external record
store. Failures here are never allowed to interrupt a live call.

Key components:
- call_store: The ``CallStore`` interface with a Supabase REST implementation
  (``httpx``) and an in-memory implementation for development and tests.
- call_state_recorder: Best-effort, idempotent updates of the call row
  (status, streaming flag, appointment data, transcript).
- business_config_loader: Reads the company settings and active agent
  configuration and merges them into a ``BusinessConfig`` snapshot.
- client_lookup: Finds an existing client and their recent jobs by phone number.

Usage examples:
```python
from voice_dispatch.services.call_store import create_call_store
from voice_dispatch.services.call_state_recorder import CallStateRecorder
from voice_dispatch.services.business_config_loader import load_business_config

store = create_call_store()
config = await load_business_config(store)
recorder = CallStateRecorder(store)
await recorder.mark_streaming("stream-id")
```
"""
