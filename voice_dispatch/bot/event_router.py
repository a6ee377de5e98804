"""
Per-session event routing between the telephony leg and the AI leg.

The router decodes every inbound message into its event variant, applies the
session state machine (idle -> streaming -> terminated) and dispatches the
event to its handler. Function calls requested by the model are executed here
and always answered with a function result, whether they succeed or fail.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from fastapi.websockets import WebSocketState

from voice_dispatch.bot.audio_relay import AudioRelay
from voice_dispatch.config.constants import (
    FUNCTION_LOOKUP_CLIENT,
    FUNCTION_SCHEDULE_APPOINTMENT,
    LOGGER_NAME,
    SCHEDULED_VIA,
)
from voice_dispatch.errors import CallStoreError, FunctionCallError
from voice_dispatch.models.appointment import AppointmentRequest, ClientLookupRequest
from voice_dispatch.models.call_session import CallSession, CallStatus
from voice_dispatch.models.realtime_events import (
    AudioDeltaEvent,
    AudioTranscriptDoneEvent,
    ConversationItemCreateEvent,
    ErrorEvent,
    FunctionCallArgumentsDoneEvent,
    FunctionCallOutputItem,
    InputTranscriptionCompletedEvent,
    ResponseCreateEvent,
    SessionCreatedEvent,
    UnknownRealtimeEvent,
    parse_realtime_event,
)
from voice_dispatch.models.telephony_events import (
    MediaEvent,
    StartEvent,
    StopEvent,
    UnknownTelephonyEvent,
    parse_telephony_event,
)
from voice_dispatch.services.call_state_recorder import CallStateRecorder, utc_now_iso
from voice_dispatch.services.call_store import CallStore
from voice_dispatch.services.client_lookup import lookup_client

logger = logging.getLogger(LOGGER_NAME)

# A function handler returns the JSON-ready output or raises FunctionCallError
FunctionHandler = Callable[[FunctionCallArgumentsDoneEvent], Awaitable[Dict[str, Any]]]


class EventRouter:
    """
    Routes events for one call session.

    Each leg's events are handled in arrival order by the task reading that
    leg. Once the session is terminated every further event is ignored.
    """

    def __init__(
        self,
        session: CallSession,
        recorder: CallStateRecorder,
        relay: Optional[AudioRelay] = None,
        store: Optional[CallStore] = None,
    ):
        self.session = session
        self.recorder = recorder
        self.store = store or recorder.store
        self.relay = relay or AudioRelay(session)
        self._final_state_recorded = False

        self.telephony_handlers: Dict[Type[Any], Callable[[Any], Awaitable[None]]] = {
            StartEvent: self._handle_start,
            MediaEvent: self._handle_media,
            StopEvent: self._handle_stop,
            UnknownTelephonyEvent: self._handle_unknown_telephony,
        }
        self.realtime_handlers: Dict[Type[Any], Callable[[Any], Awaitable[None]]] = {
            SessionCreatedEvent: self._handle_session_created,
            AudioDeltaEvent: self._handle_audio_delta,
            FunctionCallArgumentsDoneEvent: self._handle_function_call,
            ErrorEvent: self._handle_error,
            InputTranscriptionCompletedEvent: self._handle_user_transcript,
            AudioTranscriptDoneEvent: self._handle_ai_transcript,
            UnknownRealtimeEvent: self._handle_unknown_realtime,
        }
        self.function_handlers: Dict[str, FunctionHandler] = {
            FUNCTION_LOOKUP_CLIENT: self._lookup_client,
            FUNCTION_SCHEDULE_APPOINTMENT: self._schedule_appointment,
        }

    async def handle_telephony_message(self, message: Dict[str, Any]) -> None:
        """Decode and handle one message from the telephony leg."""
        if self.session.is_terminated:
            return
        event = parse_telephony_event(message)
        await self._dispatch(self.telephony_handlers[type(event)], event, "telephony")

    async def handle_realtime_message(self, message: Dict[str, Any]) -> None:
        """Decode and handle one message from the AI leg."""
        if self.session.is_terminated:
            return
        event = parse_realtime_event(message)
        await self._dispatch(self.realtime_handlers[type(event)], event, "realtime")

    async def _dispatch(self, handler, event, leg: str) -> None:
        try:
            await handler(event)
        except Exception as e:
            logger.error(
                f"Error handling {leg} event '{getattr(event, 'event', None) or getattr(event, 'type', None)}' "
                f"for {self.session.label}: {e}",
                exc_info=True,
            )

    async def terminate(self, status: CallStatus = CallStatus.COMPLETED, reason: str = "") -> None:
        """
        Terminate the session and close both legs.

        Only the first call has any effect. The final call state is written
        separately by ``record_final_state``, which the session runner awaits
        once neither receive loop is running.
        """
        if not self.session.terminate(status):
            return
        logger.info(
            f"Terminating {self.session.label} ({status.value}): {reason or 'no reason given'}; "
            f"frames to AI: {self.session.frames_to_ai}, "
            f"to telephony: {self.session.frames_to_telephony}, "
            f"dropped: {self.session.frames_dropped}"
        )

        await self.session.realtime.close()
        await close_telephony(self.session.telephony)

    async def record_final_state(self) -> None:
        """Persist the terminal status and the transcript once per session."""
        if self._final_state_recorded or not self.session.is_terminated:
            return
        self._final_state_recorded = True
        if not self.session.persistence_enabled:
            return

        call_id = self.session.call_id
        if self.session.status == CallStatus.FAILED:
            await self.recorder.mark_failed(call_id)
        else:
            await self.recorder.mark_completed(call_id)
        await self.recorder.save_transcript(call_id, self.session.transcript)

    # Telephony leg

    async def _handle_start(self, event: StartEvent) -> None:
        if self.session.is_streaming:
            logger.warning(f"Ignoring repeated start event for {self.session.label}")
            return

        call_id = event.call_id
        self.session.start_streaming(call_id)
        if event.start and event.start.media_format:
            self.session.media_format = event.start.media_format.model_dump(exclude_none=True)
        control_id = event.start.call_control_id if event.start else None
        logger.info(
            f"Media stream started for {self.session.label}"
            + (f" (call control id {control_id})" if control_id else "")
            + (f" with format {self.session.media_format}" if self.session.media_format else "")
        )

        if call_id is None:
            logger.warning(
                f"Start event without a stream identifier; {self.session.label} will not be persisted"
            )
            return
        await self.recorder.mark_streaming(call_id)

    async def _handle_media(self, event: MediaEvent) -> None:
        if not self.session.is_streaming:
            logger.debug(f"Ignoring media event before stream start for {self.session.label}")
            return
        await self.relay.forward_to_ai(event.media.payload)

    async def _handle_stop(self, event: StopEvent) -> None:
        await self.terminate(CallStatus.COMPLETED, "telephony stop event")

    async def _handle_unknown_telephony(self, event: UnknownTelephonyEvent) -> None:
        logger.info(f"Unhandled telephony event '{event.event}' for {self.session.label}")

    # AI leg

    async def _handle_session_created(self, event: SessionCreatedEvent) -> None:
        logger.info(f"OpenAI session created for {self.session.label}")

    async def _handle_audio_delta(self, event: AudioDeltaEvent) -> None:
        if not self.session.is_streaming:
            logger.debug(f"Ignoring audio delta outside streaming for {self.session.label}")
            return
        await self.relay.forward_to_telephony(event.delta)

    async def _handle_error(self, event: ErrorEvent) -> None:
        logger.error(f"Received error from OpenAI for {self.session.label}: {event.error}")

    async def _handle_user_transcript(self, event: InputTranscriptionCompletedEvent) -> None:
        self.session.add_transcript_line("User", event.transcript)
        logger.debug(f"User said: {event.transcript}")

    async def _handle_ai_transcript(self, event: AudioTranscriptDoneEvent) -> None:
        self.session.add_transcript_line("AI", event.transcript)
        logger.debug(f"AI said: {event.transcript}")

    async def _handle_unknown_realtime(self, event: UnknownRealtimeEvent) -> None:
        logger.debug(f"Unhandled realtime event '{event.type}' for {self.session.label}")

    async def _handle_function_call(self, event: FunctionCallArgumentsDoneEvent) -> None:
        logger.info(f"Function call '{event.name}' ({event.call_id}) for {self.session.label}")

        handler = self.function_handlers.get(event.name)
        if handler is None:
            output = {"success": False, "message": f"Unknown function: {event.name}"}
        else:
            try:
                output = await handler(event)
            except FunctionCallError as e:
                logger.warning(f"Function call '{event.name}' failed for {self.session.label}: {e}")
                output = {"success": False, "message": str(e)}

        await self.send_function_result(event.call_id, output)

    async def send_function_result(self, call_id: str, output: Dict[str, Any]) -> None:
        """Answer a function call and ask the model to continue speaking."""
        item = ConversationItemCreateEvent(
            item=FunctionCallOutputItem(call_id=call_id, output=json.dumps(output, default=str))
        )
        realtime = self.session.realtime
        if not await realtime.send_event(item):
            logger.warning(f"Could not deliver function result {call_id} for {self.session.label}")
            return
        await realtime.send_event(ResponseCreateEvent())

    async def _lookup_client(self, event: FunctionCallArgumentsDoneEvent) -> Dict[str, Any]:
        request = ClientLookupRequest.from_arguments(event.arguments)
        try:
            client = await lookup_client(self.store, request.phone)
        except CallStoreError as e:
            logger.error(f"Client lookup failed for {self.session.label}: {e}")
            return {"success": False, "found": False, "message": "Client lookup is unavailable"}

        if client is None:
            return {
                "success": True,
                "found": False,
                "message": "No existing client found with that phone number",
            }
        self.session.client = client
        return {"success": True, "found": True, "client": client}

    async def _schedule_appointment(self, event: FunctionCallArgumentsDoneEvent) -> Dict[str, Any]:
        request = AppointmentRequest.from_arguments(event.arguments)
        appointment_data = request.to_record(
            company_name=self.session.config.company_name,
            scheduled_via=SCHEDULED_VIA,
            scheduled_at=utc_now_iso(),
            client_id=self.session.client.get("id") if self.session.client else None,
        )

        if self.session.persistence_enabled:
            await self.recorder.record_appointment(self.session.call_id, appointment_data)
        else:
            logger.warning(
                f"Appointment for {request.customer_name} not persisted: "
                f"no call id for {self.session.label}"
            )

        when = request.preferred_date or "the next available day"
        return {
            "success": True,
            "message": (
                f"Appointment scheduled for {request.customer_name} "
                f"({request.service_type}) on {when}."
            ),
        }


async def close_telephony(websocket: Any) -> None:
    """Close the telephony WebSocket if it is still open."""
    if getattr(websocket, "application_state", None) != WebSocketState.CONNECTED:
        return
    try:
        await websocket.close()
    except Exception as e:
        logger.debug(f"Error closing telephony WebSocket: {e}")
