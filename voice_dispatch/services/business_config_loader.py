"""
Resolve the business configuration snapshot for a new call session.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from voice_dispatch.config.constants import (
    AGENT_CONFIG_TABLE,
    COMPANY_SETTINGS_TABLE,
    LOGGER_NAME,
)
from voice_dispatch.models.business_config import BusinessConfig, merge_business_config
from voice_dispatch.services.call_store import CallStore

logger = logging.getLogger(LOGGER_NAME)


async def load_business_config(store: CallStore) -> BusinessConfig:
    """
    Fetch the company settings and active agent configuration and merge them.

    Missing rows and store failures are not errors: the affected record is
    treated as absent and defaults fill the gaps.

    Args:
        store: The record store to read from

    Returns:
        A fresh immutable snapshot
    """
    company = await _fetch(store, COMPANY_SETTINGS_TABLE, None)
    agent = await _fetch(store, AGENT_CONFIG_TABLE, {"is_active": True})
    config = merge_business_config(company, agent)
    logger.info(
        f"Resolved business config for '{config.company_name}' "
        f"(company settings: {company is not None}, agent config: {agent is not None})"
    )
    return config


async def _fetch(
    store: CallStore, table: str, filters: Optional[Mapping[str, Any]]
) -> Optional[Dict[str, Any]]:
    try:
        return await store.fetch_one(table, filters)
    except Exception as e:
        logger.error(f"Error fetching {table}: {e}")
        return None
