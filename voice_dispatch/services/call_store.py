"""
Access to the external record store holding call rows and business configuration.

The bridge needs three operations: update fields on the call row matching an
identifier, fetch a single configuration row, and list rows for client lookups.
``SupabaseCallStore`` talks to the Supabase PostgREST endpoint with ``httpx``;
``InMemoryCallStore`` keeps rows in dictionaries for local development and tests.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import httpx

from voice_dispatch.config import settings
from voice_dispatch.config.constants import LOGGER_NAME
from voice_dispatch.errors import CallStoreError

logger = logging.getLogger(LOGGER_NAME)

REQUEST_TIMEOUT = 10.0  # seconds


class CallStore(ABC):
    """Interface to the record store."""

    @abstractmethod
    async def update_call(self, call_id: str, fields: Mapping[str, Any]) -> int:
        """
        Apply ``fields`` to the call row identified by ``call_id``.

        Returns:
            Number of rows updated (0 when no row matches)

        Raises:
            CallStoreError: The store could not be reached or rejected the update
        """

    @abstractmethod
    async def fetch_rows(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows of ``table`` matching the equality ``filters``.

        Args:
            table: Table name
            filters: Column -> value equality filters
            order: Sort order as ``column.asc`` or ``column.desc``
            limit: Maximum number of rows

        Raises:
            CallStoreError: The store could not be reached or rejected the query
        """

    async def fetch_one(
        self, table: str, filters: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch at most one row of ``table`` matching the equality ``filters``."""
        rows = await self.fetch_rows(table, filters, limit=1)
        return rows[0] if rows else None

    async def close(self) -> None:
        """Release any connections held by the store."""


class SupabaseCallStore(CallStore):
    """Record store backed by the Supabase REST API."""

    def __init__(
        self,
        url: str,
        service_key: str,
        calls_table: str = settings.CALLS_TABLE,
        id_column: str = settings.CALL_ID_COLUMN,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.calls_table = calls_table
        self.id_column = id_column
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def update_call(self, call_id: str, fields: Mapping[str, Any]) -> int:
        try:
            response = await self._client.patch(
                f"/{self.calls_table}",
                params={self.id_column: f"eq.{call_id}"},
                json=dict(fields),
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CallStoreError(f"Update of {self.calls_table} row {call_id} failed: {e}") from e
        rows = response.json() if response.content else []
        return len(rows) if isinstance(rows, list) else 0

    async def fetch_rows(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {key: f"eq.{_filter_value(value)}" for key, value in (filters or {}).items()}
        params["select"] = "*"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        try:
            response = await self._client.get(f"/{table}", params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CallStoreError(f"Query of {table} failed: {e}") from e
        rows = response.json()
        return rows if isinstance(rows, list) else []

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryCallStore(CallStore):
    """
    Dictionary-backed store.

    Call rows are keyed by call identifier; all other rows are kept as
    plain lists per table.
    """

    def __init__(
        self,
        calls: Optional[Dict[str, Dict[str, Any]]] = None,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ):
        self.calls: Dict[str, Dict[str, Any]] = calls if calls is not None else {}
        self.tables: Dict[str, List[Dict[str, Any]]] = tables if tables is not None else {}

    async def update_call(self, call_id: str, fields: Mapping[str, Any]) -> int:
        row = self.calls.get(call_id)
        if row is None:
            return 0
        row.update(copy.deepcopy(dict(fields)))
        return 1

    async def fetch_rows(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        rows = [
            dict(row)
            for row in self.tables.get(table, [])
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda row: str(row.get(column) or ""), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return rows


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def create_call_store() -> CallStore:
    """Build the store configured in the environment."""
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.info(f"Using Supabase call store at {settings.SUPABASE_URL}")
        return SupabaseCallStore(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set, using in-memory call store")
    return InMemoryCallStore()
