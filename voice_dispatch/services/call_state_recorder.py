"""
Best-effort persistence of call lifecycle state.

Every write goes through ``CallStateRecorder.record``, which never raises:
the store is telemetry, so a failed write is logged and the call carries on.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from voice_dispatch.config.constants import (
    CALL_STATUS_COMPLETED,
    CALL_STATUS_FAILED,
    CALL_STATUS_STREAMING,
    LOGGER_NAME,
)
from voice_dispatch.services.call_store import CallStore

logger = logging.getLogger(LOGGER_NAME)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CallStateRecorder:
    """Maps session lifecycle transitions onto call row updates."""

    def __init__(self, store: CallStore):
        self.store = store

    async def record(self, call_id: Optional[str], **fields: Any) -> bool:
        """
        Apply a partial update to the call row, swallowing any failure.

        Args:
            call_id: Call identifier; nothing is written when it is unset
            **fields: Columns to set

        Returns:
            True if the store accepted the write, False otherwise
        """
        if not call_id:
            logger.debug(f"Skipping call state update without call id: {sorted(fields)}")
            return False
        if not fields:
            return False

        try:
            rows = await self.store.update_call(call_id, fields)
        except Exception as e:
            logger.error(f"Failed to persist call state for {call_id}: {e}")
            return False

        if rows == 0:
            logger.warning(f"No call record matched {call_id}; update {sorted(fields)} not applied")
        else:
            logger.debug(f"Persisted {sorted(fields)} for call {call_id}")
        return True

    async def mark_streaming(self, call_id: Optional[str]) -> bool:
        return await self.record(
            call_id, call_status=CALL_STATUS_STREAMING, streaming_active=True
        )

    async def mark_completed(self, call_id: Optional[str]) -> bool:
        return await self.record(
            call_id,
            call_status=CALL_STATUS_COMPLETED,
            streaming_active=False,
            ended_at=utc_now_iso(),
        )

    async def mark_failed(self, call_id: Optional[str]) -> bool:
        return await self.record(
            call_id,
            call_status=CALL_STATUS_FAILED,
            streaming_active=False,
            ended_at=utc_now_iso(),
        )

    async def record_appointment(
        self, call_id: Optional[str], appointment_data: Dict[str, Any]
    ) -> bool:
        return await self.record(
            call_id, appointment_scheduled=True, appointment_data=appointment_data
        )

    async def save_transcript(self, call_id: Optional[str], lines: List[str]) -> bool:
        """Store the conversation transcript, if there is one."""
        if not lines:
            return False
        return await self.record(call_id, ai_transcript="\n".join(lines))
