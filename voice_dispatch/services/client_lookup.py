"""
Look up an existing client, and their most recent jobs, by phone number.
"""

import logging
from typing import Any, Dict, Optional

from voice_dispatch.config.constants import (
    CLIENTS_TABLE,
    JOBS_TABLE,
    LOGGER_NAME,
    RECENT_JOBS_LIMIT,
)
from voice_dispatch.services.call_store import CallStore

logger = logging.getLogger(LOGGER_NAME)

CLIENT_FIELDS = ("id", "name", "phone", "email", "address", "type")
JOB_FIELDS = ("id", "title", "service", "date", "status", "notes")


async def lookup_client(store: CallStore, phone: str) -> Optional[Dict[str, Any]]:
    """
    Find the client whose phone number matches ``phone`` exactly.

    Args:
        store: Record store holding the clients and jobs tables
        phone: Phone number as given by the caller

    Returns:
        The client fields plus ``recent_jobs`` (newest first), or None if no
        client has that number

    Raises:
        CallStoreError: Either query failed
    """
    client = await store.fetch_one(CLIENTS_TABLE, {"phone": phone})
    if client is None:
        logger.info(f"No client found for phone {phone}")
        return None

    jobs = []
    if client.get("id") is not None:
        jobs = await store.fetch_rows(
            JOBS_TABLE,
            {"client_id": client["id"]},
            order="created_at.desc",
            limit=RECENT_JOBS_LIMIT,
        )

    result = {field: client.get(field) for field in CLIENT_FIELDS}
    result["recent_jobs"] = [{field: job.get(field) for field in JOB_FIELDS} for job in jobs]
    logger.info(f"Found client {result['id']} with {len(jobs)} recent jobs")
    return result
