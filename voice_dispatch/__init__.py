"""
Voice Dispatch Bridge - telephony media stream to OpenAI Realtime API

This application answers phone calls for a home-service business with a
real-time AI voice agent. The telephony provider streams the call's audio over
a WebSocket; the bridge relays it to the OpenAI Realtime API and streams the
synthesized reply back, while the model books appointments through function
calls.

Architecture Overview:
- FastAPI server exposing the media-stream WebSocket endpoint
- One bridged session per call, each with its own OpenAI Realtime connection
- Business configuration resolved per call from the record store
- Best-effort persistence of call status, appointments and transcripts

Key Components:
- bot: Realtime client, session instructions, audio relay, event router and the bridge
- config: Constants, environment settings and logging setup
- models: Wire schemas for both legs, business configuration and session state
- services: Record store access, call state recorder and configuration loader
- websocket_manager: Accepts telephony connections and hands them to the bridge

Getting Started:
1. Set up environment variables:
   - OPENAI_API_KEY: Your OpenAI API key
   - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: The record store
   - SESSION_IDLE_TIMEOUT: Seconds without telephony events before a call is ended (default 60)
   - PORT, HOST, LOG_LEVEL

2. Start the server:
   ```bash
   python run.py
   ```

3. Point the telephony provider's bidirectional media stream at
   ``wss://your-server/media-stream``.
"""
