"""
Bridge module connecting a telephony media stream with the OpenAI Realtime API.

One ``DispatchBridge`` serves every call in the process. For each telephony
WebSocket it builds a ``CallSession``, opens the AI leg, sends the session
configuration before anything else, and then runs both legs concurrently until
either one ends. Both legs are closed on every exit path.
"""

import asyncio
import json
import logging
from typing import Callable, Optional

from fastapi import WebSocket, WebSocketDisconnect

from voice_dispatch.bot.event_router import EventRouter, close_telephony
from voice_dispatch.bot.realtime_api import RealtimeClient
from voice_dispatch.bot.session_instructions import build_session_update
from voice_dispatch.config import settings
from voice_dispatch.config.constants import LOGGER_NAME
from voice_dispatch.errors import RealtimeConnectionError
from voice_dispatch.models.call_session import CallSession, CallStatus, SessionManager
from voice_dispatch.services.business_config_loader import load_business_config
from voice_dispatch.services.call_state_recorder import CallStateRecorder
from voice_dispatch.services.call_store import CallStore, create_call_store

logger = logging.getLogger(LOGGER_NAME)


class DispatchBridge:
    """
    Bridge between the telephony media-stream protocol and OpenAI Realtime API.

    This class handles:
    - Resolving the business configuration for each new call
    - Opening and configuring the AI leg before any audio flows
    - Running the telephony and AI receive loops for the call
    - Enforcing the idle timeout and closing both legs when the call ends
    """

    def __init__(
        self,
        store: Optional[CallStore] = None,
        client_factory: Callable[[str, str], RealtimeClient] = RealtimeClient,
        api_key: Optional[str] = None,
        model: str = settings.OPENAI_REALTIME_MODEL,
        idle_timeout: float = settings.SESSION_IDLE_TIMEOUT,
    ):
        self._store = store
        self._recorder: Optional[CallStateRecorder] = None
        self.client_factory = client_factory
        self.api_key = api_key
        self.model = model
        self.idle_timeout = idle_timeout
        self.sessions = SessionManager()

    @property
    def store(self) -> CallStore:
        if self._store is None:
            self._store = create_call_store()
        return self._store

    @property
    def recorder(self) -> CallStateRecorder:
        if self._recorder is None:
            self._recorder = CallStateRecorder(self.store)
        return self._recorder

    def _resolve_api_key(self) -> Optional[str]:
        return self.api_key or settings.OPENAI_API_KEY

    async def run_session(self, websocket: WebSocket) -> CallSession:
        """
        Bridge one accepted telephony WebSocket until the call ends.

        Args:
            websocket: The accepted telephony WebSocket

        Returns:
            The finished session
        """
        config = await load_business_config(self.store)
        api_key = self._resolve_api_key()
        realtime = self.client_factory(api_key or "", self.model)
        session = CallSession(websocket, realtime, config)
        router = EventRouter(session, self.recorder)
        self.sessions.add_session(session)
        logger.info(f"Session {session.session_id} opened for {config.company_name}")

        try:
            try:
                if not api_key:
                    raise RealtimeConnectionError("OPENAI_API_KEY environment variable not set")
                await realtime.connect()
                await self._configure(session)
            except RealtimeConnectionError as e:
                logger.error(f"Could not open AI leg for {session.label}: {e}")
                await router.terminate(CallStatus.FAILED, str(e))
                return session

            status, reason = await self._run_legs(session, router)
            await router.terminate(status, reason)
        finally:
            # Covers cancellation and unexpected errors as well
            if not session.is_terminated:
                await router.terminate(CallStatus.FAILED, "session aborted")
            await realtime.close()
            await close_telephony(websocket)
            # Both receive loops have finished by now
            await router.record_final_state()
            self.sessions.remove_session(session.session_id)
            logger.info(f"Session {session.session_id} closed ({session.status.value})")

        return session

    async def _configure(self, session: CallSession) -> None:
        """Send session.update; it must be the first event on the AI leg."""
        if not await session.realtime.send_event(build_session_update(session.config)):
            raise RealtimeConnectionError("Failed to send session configuration")
        session.ai_configured = True
        logger.info(f"Sent session configuration for {session.label}")

    async def _run_legs(self, session: CallSession, router: EventRouter):
        telephony_task = asyncio.create_task(self._receive_telephony(session, router))
        realtime_task = asyncio.create_task(self._receive_realtime(session, router))
        tasks = {telephony_task, realtime_task}

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        finished = telephony_task if telephony_task in done else realtime_task
        if finished.cancelled():
            return CallStatus.FAILED, "receive loop cancelled"
        error = finished.exception()
        if error is not None:
            logger.error(f"Receive loop failed for {session.label}: {error}", exc_info=error)
            return CallStatus.FAILED, str(error)
        return finished.result()

    async def _receive_telephony(self, session: CallSession, router: EventRouter):
        websocket = session.telephony
        while not session.is_terminated:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=self.idle_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"No telephony events for {self.idle_timeout}s on {session.label}, ending session"
                )
                return CallStatus.FAILED, "idle timeout"
            except (WebSocketDisconnect, RuntimeError) as e:
                return CallStatus.COMPLETED, f"telephony leg closed: {e}"
            except KeyError:
                # receive_text() raises KeyError for a binary frame
                logger.warning(f"Ignoring non-text telephony frame on {session.label}")
                continue

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Received invalid JSON on telephony leg: {data[:100]}...")
                continue
            if not isinstance(message, dict):
                logger.warning("Ignoring non-object telephony message")
                continue

            await router.handle_telephony_message(message)

        return CallStatus.COMPLETED, "session terminated"

    async def _receive_realtime(self, session: CallSession, router: EventRouter):
        try:
            async for message in session.realtime.events():
                await router.handle_realtime_message(message)
                if session.is_terminated:
                    return CallStatus.COMPLETED, "session terminated"
        except RealtimeConnectionError as e:
            return CallStatus.FAILED, str(e)
        if session.is_terminated:
            return CallStatus.COMPLETED, "session terminated"
        return CallStatus.FAILED, "AI leg closed"


# Create a singleton instance of the bridge
bridge = DispatchBridge()
