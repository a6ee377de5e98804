"""
Bot module bridging a telephony media stream with the OpenAI Realtime API.

This module provides the components that carry a live call between the telephony
leg and the AI leg.

Key components:
- RealtimeClient: Client for one OpenAI Realtime API WebSocket, with explicit
  connect/close lifecycle and no reconnection.
- session_instructions: Builds the ``session.update`` message (persona, pricing,
  audio formats, voice-activity detection, tools) from the business configuration.
- AudioRelay: Forwards audio frames between the legs in arrival order, dropping
  frames when the destination is not ready.
- EventRouter: Decodes events from both legs, runs the session state machine and
  executes function calls such as ``schedule_appointment``.
- DispatchBridge: Runs one session per telephony WebSocket and guarantees both legs
  are closed when the call ends.

Usage examples:
```python
from voice_dispatch.bot import bridge

@app.websocket("/media-stream")
async def media_stream(websocket: WebSocket):
    await websocket.accept()
    await bridge.run_session(websocket)
```
"""

from voice_dispatch.bot.audio_relay import AudioRelay, normalize_payload
from voice_dispatch.bot.dispatch_bridge import DispatchBridge, bridge
from voice_dispatch.bot.event_router import EventRouter
from voice_dispatch.bot.realtime_api import RealtimeClient
from voice_dispatch.bot.session_instructions import build_instructions, build_session_update
