"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol names and defaults and making it easier
to maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_dispatch"

# Default OpenAI model for Realtime API
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
REALTIME_API_URL = "wss://api.openai.com/v1/realtime"

# Audio format shared by both legs (Telnyx PCMU at 8kHz)
AUDIO_FORMAT_G711_ULAW = "g711_ulaw"
DEFAULT_VOICE = "alloy"
TRANSCRIPTION_MODEL = "whisper-1"

# Voice activity detection
VAD_TYPE = "server_vad"
VAD_THRESHOLD = 0.5
VAD_PREFIX_PADDING_MS = 300
VAD_SILENCE_DURATION_MS = 800

# Telephony leg event names (tagged by "event")
TELEPHONY_EVENT_START = "start"
TELEPHONY_EVENT_MEDIA = "media"
TELEPHONY_EVENT_STOP = "stop"

# AI leg event types (tagged by "type")
AI_EVENT_SESSION_CREATED = "session.created"
AI_EVENT_AUDIO_DELTA = "response.audio.delta"
AI_EVENT_FUNCTION_CALL_DONE = "response.function_call_arguments.done"
AI_EVENT_ERROR = "error"
AI_EVENT_INPUT_TRANSCRIPTION_DONE = "conversation.item.input_audio_transcription.completed"
AI_EVENT_AUDIO_TRANSCRIPT_DONE = "response.audio_transcript.done"

# Structured actions
FUNCTION_SCHEDULE_APPOINTMENT = "schedule_appointment"
FUNCTION_LOOKUP_CLIENT = "lookup_client"
SCHEDULED_VIA = "ai_voice_dispatch"

# Persisted call statuses
CALL_STATUS_STREAMING = "streaming"
CALL_STATUS_COMPLETED = "completed"
CALL_STATUS_FAILED = "failed"

# Store tables
COMPANY_SETTINGS_TABLE = "company_settings"
AGENT_CONFIG_TABLE = "ai_agent_configs"
DEFAULT_CALLS_TABLE = "telnyx_calls"
# Call rows are keyed by the media stream id from the start event
DEFAULT_CALL_ID_COLUMN = "stream_id"
CLIENTS_TABLE = "clients"
JOBS_TABLE = "jobs"
RECENT_JOBS_LIMIT = 5

# Session timing
DEFAULT_SESSION_IDLE_TIMEOUT = 60.0  # seconds
