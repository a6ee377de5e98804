"""
Pydantic models for the telephony media-streaming WebSocket protocol.

The telephony leg tags each JSON message with an ``event`` field. The bridge
understands ``start``, ``media`` and ``stop``; anything else (``connected``,
``mark``, ``dtmf``, future additions) is parsed into ``UnknownTelephonyEvent``
so that the router can log it and move on.
"""

import logging
from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from voice_dispatch.config.constants import (
    LOGGER_NAME,
    TELEPHONY_EVENT_MEDIA,
    TELEPHONY_EVENT_START,
    TELEPHONY_EVENT_STOP,
)

logger = logging.getLogger(LOGGER_NAME)

STREAM_ID_ALIASES = AliasChoices("stream_id", "streamId", "streamSid")


class MediaFormat(BaseModel):
    """Audio format descriptor announced in the start event."""

    model_config = ConfigDict(extra="allow")

    encoding: Optional[str] = Field(None, description="Codec name, e.g. PCMU")
    sample_rate: Optional[int] = Field(None, description="Samples per second")
    channels: Optional[int] = Field(None, description="Channel count")


class TelephonyBaseEvent(BaseModel):
    """Fields shared by every telephony event."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event: str = Field(..., description="Event tag")
    stream_id: Optional[str] = Field(
        None,
        validation_alias=STREAM_ID_ALIASES,
        description="Media stream identifier",
    )
    sequence_number: Optional[Union[str, int]] = Field(
        None, validation_alias=AliasChoices("sequence_number", "sequenceNumber")
    )


class StartPayload(BaseModel):
    """Body of the start event."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    call_control_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("call_control_id", "callSid")
    )
    media_format: Optional[MediaFormat] = Field(
        None, validation_alias=AliasChoices("media_format", "mediaFormat")
    )


class StartEvent(TelephonyBaseEvent):
    """Stream start. Carries the identifier used as the call identifier."""

    event: Literal["start"]
    start: Optional[StartPayload] = None

    @property
    def call_id(self) -> Optional[str]:
        """The stream identifier, or None when it is missing or blank."""
        if self.stream_id and self.stream_id.strip():
            return self.stream_id.strip()
        return None


class MediaPayload(BaseModel):
    """Body of a media event: one audio frame."""

    model_config = ConfigDict(extra="allow")

    track: Optional[str] = Field(None, description="inbound or outbound")
    chunk: Optional[Union[str, int]] = Field(None, description="Frame index")
    timestamp: Optional[Union[str, int]] = Field(None, description="Frame timestamp")
    payload: str = Field(..., description="Base64-encoded audio")


class MediaEvent(TelephonyBaseEvent):
    """One audio frame from the caller."""

    event: Literal["media"]
    media: MediaPayload


class StopEvent(TelephonyBaseEvent):
    """Stream stop."""

    event: Literal["stop"]


class UnknownTelephonyEvent(TelephonyBaseEvent):
    """Any event the bridge does not act on, or a known event that failed validation."""

    raw: Dict[str, Any] = Field(default_factory=dict)


TelephonyStreamEvent = Union[StartEvent, MediaEvent, StopEvent, UnknownTelephonyEvent]

_EVENT_MODELS: Dict[str, Type[TelephonyBaseEvent]] = {
    TELEPHONY_EVENT_START: StartEvent,
    TELEPHONY_EVENT_MEDIA: MediaEvent,
    TELEPHONY_EVENT_STOP: StopEvent,
}


def parse_telephony_event(message: Dict[str, Any]) -> TelephonyStreamEvent:
    """
    Decode a telephony message into its variant.

    Args:
        message: The decoded JSON object received on the telephony leg

    Returns:
        The matching event model, or ``UnknownTelephonyEvent`` when the tag is
        unrecognised or the body fails validation
    """
    tag = message.get("event")
    model = _EVENT_MODELS.get(tag) if isinstance(tag, str) else None
    if model is not None:
        try:
            return model.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Malformed telephony '{tag}' event: {e}")
    return UnknownTelephonyEvent(
        event=str(tag) if tag is not None else "unknown",
        stream_id=_stream_id_of(message),
        raw=message,
    )


def _stream_id_of(message: Dict[str, Any]) -> Optional[str]:
    for key in ("stream_id", "streamId", "streamSid"):
        value = message.get(key)
        if isinstance(value, str):
            return value
    return None


class OutboundMedia(BaseModel):
    payload: str


class TelephonyMediaMessage(BaseModel):
    """Audio frame sent back to the caller."""

    event: Literal["media"] = "media"
    media: OutboundMedia

    @classmethod
    def from_payload(cls, payload: str) -> "TelephonyMediaMessage":
        return cls(media=OutboundMedia(payload=payload))
