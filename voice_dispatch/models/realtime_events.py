"""
Pydantic models for OpenAI Realtime API message structures.

This module provides type-safe models for the events exchanged with the OpenAI Realtime API,
covering the inbound events the bridge acts on and the outbound events it sends.
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from voice_dispatch.config.constants import (
    AI_EVENT_AUDIO_DELTA,
    AI_EVENT_AUDIO_TRANSCRIPT_DONE,
    AI_EVENT_ERROR,
    AI_EVENT_FUNCTION_CALL_DONE,
    AI_EVENT_INPUT_TRANSCRIPTION_DONE,
    AI_EVENT_SESSION_CREATED,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)


# Inbound events

class RealtimeBaseEvent(BaseModel):
    """Base model for Realtime API events."""

    model_config = ConfigDict(extra="allow")

    type: str
    event_id: Optional[str] = None


class SessionCreatedEvent(RealtimeBaseEvent):
    type: Literal["session.created"]
    session: Dict[str, Any] = Field(default_factory=dict)


class AudioDeltaEvent(RealtimeBaseEvent):
    """A chunk of synthesized speech."""

    type: Literal["response.audio.delta"]
    delta: str
    response_id: Optional[str] = None
    item_id: Optional[str] = None


class FunctionCallArgumentsDoneEvent(RealtimeBaseEvent):
    """The model finished streaming the arguments of a function call."""

    type: Literal["response.function_call_arguments.done"]
    name: str
    call_id: str
    arguments: str = ""


class ErrorEvent(RealtimeBaseEvent):
    type: Literal["error"]
    error: Dict[str, Any] = Field(default_factory=dict)


class InputTranscriptionCompletedEvent(RealtimeBaseEvent):
    type: Literal["conversation.item.input_audio_transcription.completed"]
    transcript: str = ""


class AudioTranscriptDoneEvent(RealtimeBaseEvent):
    type: Literal["response.audio_transcript.done"]
    transcript: str = ""


class UnknownRealtimeEvent(RealtimeBaseEvent):
    """Any event type the bridge passes through without acting on it."""

    raw: Dict[str, Any] = Field(default_factory=dict)


AIRealtimeEvent = Union[
    SessionCreatedEvent,
    AudioDeltaEvent,
    FunctionCallArgumentsDoneEvent,
    ErrorEvent,
    InputTranscriptionCompletedEvent,
    AudioTranscriptDoneEvent,
    UnknownRealtimeEvent,
]

_EVENT_MODELS: Dict[str, Type[RealtimeBaseEvent]] = {
    AI_EVENT_SESSION_CREATED: SessionCreatedEvent,
    AI_EVENT_AUDIO_DELTA: AudioDeltaEvent,
    AI_EVENT_FUNCTION_CALL_DONE: FunctionCallArgumentsDoneEvent,
    AI_EVENT_ERROR: ErrorEvent,
    AI_EVENT_INPUT_TRANSCRIPTION_DONE: InputTranscriptionCompletedEvent,
    AI_EVENT_AUDIO_TRANSCRIPT_DONE: AudioTranscriptDoneEvent,
}


def parse_realtime_event(message: Dict[str, Any]) -> AIRealtimeEvent:
    """
    Decode an AI-leg message into its variant.

    Unrecognised types, and recognised types whose body fails validation,
    come back as ``UnknownRealtimeEvent``.
    """
    event_type = message.get("type")
    model = _EVENT_MODELS.get(event_type) if isinstance(event_type, str) else None
    if model is not None:
        try:
            return model.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Malformed realtime '{event_type}' event: {e}")
    return UnknownRealtimeEvent(
        type=str(event_type) if event_type is not None else "unknown",
        raw=message,
    )


# Outbound events

class TurnDetection(BaseModel):
    type: str
    threshold: float
    prefix_padding_ms: int
    silence_duration_ms: int


class InputAudioTranscription(BaseModel):
    model: str


class FunctionTool(BaseModel):
    """A callable structured action declared to the model."""

    type: Literal["function"] = "function"
    name: str
    description: str
    parameters: Dict[str, Any]


class SessionConfig(BaseModel):
    modalities: List[str]
    instructions: str
    voice: str
    input_audio_format: str
    output_audio_format: str
    input_audio_transcription: Optional[InputAudioTranscription] = None
    turn_detection: TurnDetection
    tools: List[FunctionTool]
    tool_choice: str = "auto"
    temperature: float = 0.8


class SessionUpdateEvent(BaseModel):
    type: Literal["session.update"] = "session.update"
    session: SessionConfig


class InputAudioBufferAppendEvent(BaseModel):
    type: Literal["input_audio_buffer.append"] = "input_audio_buffer.append"
    audio: str


class FunctionCallOutputItem(BaseModel):
    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str


class ConversationItemCreateEvent(BaseModel):
    type: Literal["conversation.item.create"] = "conversation.item.create"
    item: FunctionCallOutputItem


class ResponseCreateEvent(BaseModel):
    type: Literal["response.create"] = "response.create"


OutgoingRealtimeEvent = Union[
    SessionUpdateEvent,
    InputAudioBufferAppendEvent,
    ConversationItemCreateEvent,
    ResponseCreateEvent,
]
