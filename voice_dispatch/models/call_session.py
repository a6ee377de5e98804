"""
Per-call session state and the registry of active sessions.

A ``CallSession`` lives for exactly one bridged call. It owns the two legs,
the business configuration snapshot and the router state, and is dropped
from the ``SessionManager`` once either leg closes.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from voice_dispatch.models.business_config import BusinessConfig


class SessionState(str, Enum):
    """Router state. TERMINATED is absorbing."""
    IDLE = "idle"
    STREAMING = "streaming"
    TERMINATED = "terminated"


class CallStatus(str, Enum):
    """Lifecycle status of the call as seen by the bridge."""
    INITIATED = "initiated"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class CallSession:
    """
    State for one bridged call.

    Attributes:
        session_id: Local identifier, used for logging before the call id is known
        call_id: Identifier learned from the telephony start event
        telephony: The telephony WebSocket
        realtime: The AI leg client
        config: Immutable business configuration for this call
        client: Client record found during the call, if any
    """

    def __init__(self, telephony: Any, realtime: Any, config: BusinessConfig):
        self.session_id = uuid.uuid4().hex[:12]
        self.call_id: Optional[str] = None
        self.telephony = telephony
        self.realtime = realtime
        self.config = config
        self.state = SessionState.IDLE
        self.status = CallStatus.INITIATED
        self.persistence_enabled = False
        # Set once session.update has gone out on the AI leg
        self.ai_configured = False
        self.media_format: Optional[Dict[str, Any]] = None
        # Existing client found by a lookup_client call
        self.client: Optional[Dict[str, Any]] = None
        self.transcript: List[str] = []
        self.frames_to_ai = 0
        self.frames_to_telephony = 0
        self.frames_dropped = 0

    @property
    def is_streaming(self) -> bool:
        return self.state == SessionState.STREAMING

    @property
    def is_terminated(self) -> bool:
        return self.state == SessionState.TERMINATED

    @property
    def label(self) -> str:
        """Identifier used in log lines."""
        return self.call_id or f"session-{self.session_id}"

    def start_streaming(self, call_id: Optional[str]) -> None:
        """Enter STREAMING, remembering the call id when one was supplied."""
        if self.is_terminated:
            return
        self.call_id = call_id
        self.persistence_enabled = call_id is not None
        self.state = SessionState.STREAMING
        self.status = CallStatus.STREAMING

    def terminate(self, status: CallStatus = CallStatus.COMPLETED) -> bool:
        """
        Enter TERMINATED.

        Returns:
            True if this call changed the state, False if already terminated
        """
        if self.is_terminated:
            return False
        self.state = SessionState.TERMINATED
        self.status = status
        return True

    def add_transcript_line(self, speaker: str, text: str) -> None:
        text = text.strip()
        if text:
            self.transcript.append(f"{speaker}: {text}")


class SessionManager:
    """
    Registry of active call sessions.

    The registry is only used for visibility (health endpoint, shutdown);
    sessions never read each other's state.
    """

    def __init__(self):
        """Initialize an empty dictionary of active sessions."""
        self.active_sessions: Dict[str, CallSession] = {}

    def add_session(self, session: CallSession) -> None:
        self.active_sessions[session.session_id] = session

    def get_session(self, session_id: str) -> Optional[CallSession]:
        """
        Get an active session by its local id.

        Returns:
            The session, or None if it does not exist
        """
        return self.active_sessions.get(session_id)

    def remove_session(self, session_id: str) -> None:
        self.active_sessions.pop(session_id, None)

    def count(self) -> int:
        return len(self.active_sessions)
