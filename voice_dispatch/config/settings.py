"""
Environment-driven settings for the dispatch bridge.

Values are read once at import time. A ``.env`` file in the working
directory is loaded first if it exists.
"""

import os
from pathlib import Path

import dotenv

from voice_dispatch.config.constants import (
    DEFAULT_CALL_ID_COLUMN,
    DEFAULT_CALLS_TABLE,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_SESSION_IDLE_TIMEOUT,
)

env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_REALTIME_MODEL = os.getenv("OPENAI_REALTIME_MODEL", DEFAULT_REALTIME_MODEL)

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
CALLS_TABLE = os.getenv("CALLS_TABLE", DEFAULT_CALLS_TABLE)
CALL_ID_COLUMN = os.getenv("CALL_ID_COLUMN", DEFAULT_CALL_ID_COLUMN)

SESSION_IDLE_TIMEOUT = float(
    os.getenv("SESSION_IDLE_TIMEOUT", str(DEFAULT_SESSION_IDLE_TIMEOUT))
)

PORT = int(os.getenv("PORT", "8000"))
HOST = os.getenv("HOST", "0.0.0.0")
