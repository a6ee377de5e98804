"""
Frame-by-frame audio forwarding between the telephony and AI legs.

Frames are forwarded as soon as they arrive, in arrival order, with no
buffering. When the destination leg is not ready the frame is dropped: a call
may lose a little audio but it must never stall.
"""

import base64
import binascii
import logging
from typing import Any, Union

from fastapi.websockets import WebSocketState

from voice_dispatch.config.constants import LOGGER_NAME
from voice_dispatch.models.call_session import CallSession
from voice_dispatch.models.realtime_events import InputAudioBufferAppendEvent
from voice_dispatch.models.telephony_events import TelephonyMediaMessage

logger = logging.getLogger(LOGGER_NAME)


def normalize_payload(payload: Union[bytes, bytearray, str]) -> str:
    """
    Return the base64 text form of an audio frame.

    Raw bytes are encoded; text is checked to be valid base64 and passed
    through unchanged.

    Raises:
        ValueError: The text payload is empty or not base64
    """
    if isinstance(payload, (bytes, bytearray)):
        return base64.b64encode(bytes(payload)).decode("ascii")
    if not payload:
        raise ValueError("Audio payload cannot be empty")
    try:
        base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 encoded audio data: {e}") from e
    return payload


def telephony_ready(websocket: Any) -> bool:
    """True while the telephony WebSocket is connected in both directions."""
    return (
        getattr(websocket, "application_state", None) == WebSocketState.CONNECTED
        and getattr(websocket, "client_state", None) == WebSocketState.CONNECTED
    )


class AudioRelay:
    """Forwards audio frames for one call session."""

    def __init__(self, session: CallSession):
        self.session = session

    async def forward_to_ai(self, payload: Union[bytes, str]) -> bool:
        """
        Forward one caller frame to the AI leg as ``input_audio_buffer.append``.

        Returns:
            True if the frame was sent, False if it was dropped
        """
        realtime = self.session.realtime
        if not (self.session.ai_configured and realtime.is_open):
            return self._drop("AI leg not ready")

        try:
            audio = normalize_payload(payload)
        except ValueError as e:
            return self._drop(str(e))

        if not await realtime.send_event(InputAudioBufferAppendEvent(audio=audio)):
            return self._drop("AI leg send failed")
        self.session.frames_to_ai += 1
        return True

    async def forward_to_telephony(self, payload: Union[bytes, str]) -> bool:
        """
        Forward one synthesized frame to the caller as a telephony media event.

        Returns:
            True if the frame was sent, False if it was dropped
        """
        websocket = self.session.telephony
        if not telephony_ready(websocket):
            return self._drop("telephony leg not ready")

        try:
            audio = normalize_payload(payload)
        except ValueError as e:
            return self._drop(str(e))

        try:
            await websocket.send_text(TelephonyMediaMessage.from_payload(audio).model_dump_json())
        except Exception as e:
            logger.warning(f"Error sending audio to telephony for {self.session.label}: {e}")
            return self._drop("telephony send failed")
        self.session.frames_to_telephony += 1
        return True

    def _drop(self, reason: str) -> bool:
        self.session.frames_dropped += 1
        logger.debug(f"Dropped audio frame for {self.session.label}: {reason}")
        return False
