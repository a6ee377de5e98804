"""
Configuration module for the voice dispatch bridge.

This module provides centralized configuration management for the entire application,
including constants, logging setup, and environment-based settings.

Key components:
- constants: Protocol event names, audio formats, voice-activity-detection values,
  persisted status strings and table names.
- logging_config: Console and rotating file logging for the application logger.
- settings: Values read from the environment (and an optional ``.env`` file), such as
  the OpenAI API key, the Supabase connection and the session idle timeout.

Usage examples:
```python
from voice_dispatch.config.constants import LOGGER_NAME, AI_EVENT_AUDIO_DELTA
from voice_dispatch.config.logging_config import configure_logging
from voice_dispatch.config import settings

logger = configure_logging()
logger.info(f"Idle timeout: {settings.SESSION_IDLE_TIMEOUT}s")
```
"""
