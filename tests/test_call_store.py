"""
Tests for the record store implementations.

The Supabase store is exercised against ``httpx.MockTransport`` so that the
REST requests it issues can be inspected without a network.
"""

import json
from unittest.mock import patch

import httpx
import pytest

from voice_dispatch.errors import CallStoreError
from voice_dispatch.services import call_store
from voice_dispatch.services.call_store import (
    InMemoryCallStore,
    SupabaseCallStore,
    create_call_store,
)


def make_store(handler, requests):
    def record(request):
        requests.append(request)
        return handler(request)

    return SupabaseCallStore(
        "https://project.supabase.co/",
        "service-key",
        transport=httpx.MockTransport(record),
    )


@pytest.mark.asyncio
async def test_update_call_sends_patch():
    requests = []
    store = make_store(lambda request: httpx.Response(200, json=[{"id": 1}]), requests)

    rows = await store.update_call("abc", {"call_status": "streaming", "streaming_active": True})
    await store.close()

    assert rows == 1
    request = requests[0]
    assert request.method == "PATCH"
    assert request.url.path == "/rest/v1/telnyx_calls"
    assert request.url.params["stream_id"] == "eq.abc"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == {"call_status": "streaming", "streaming_active": True}


@pytest.mark.asyncio
async def test_update_call_with_no_matching_row():
    store = make_store(lambda request: httpx.Response(200, json=[]), [])

    assert await store.update_call("missing", {"call_status": "completed"}) == 0
    await store.close()


@pytest.mark.asyncio
async def test_update_call_http_error_raises_store_error():
    store = make_store(lambda request: httpx.Response(500, json={"message": "boom"}), [])

    with pytest.raises(CallStoreError):
        await store.update_call("abc", {"call_status": "completed"})
    await store.close()


@pytest.mark.asyncio
async def test_update_call_transport_error_raises_store_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = make_store(handler, [])

    with pytest.raises(CallStoreError):
        await store.update_call("abc", {"call_status": "completed"})
    await store.close()


@pytest.mark.asyncio
async def test_fetch_one_builds_filters():
    requests = []
    store = make_store(
        lambda request: httpx.Response(200, json=[{"agent_name": "Riley"}]), requests
    )

    row = await store.fetch_one("ai_agent_configs", {"is_active": True})
    await store.close()

    assert row == {"agent_name": "Riley"}
    params = requests[0].url.params
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/rest/v1/ai_agent_configs"
    assert params["is_active"] == "eq.true"
    assert params["select"] == "*"
    assert params["limit"] == "1"


@pytest.mark.asyncio
async def test_fetch_one_without_rows_returns_none():
    store = make_store(lambda request: httpx.Response(200, json=[]), [])

    assert await store.fetch_one("company_settings") is None
    await store.close()


@pytest.mark.asyncio
async def test_in_memory_store():
    store = InMemoryCallStore(
        calls={"abc": {"stream_id": "abc"}},
        tables={"ai_agent_configs": [{"agent_name": "Riley", "is_active": True}]},
    )

    assert await store.update_call("abc", {"call_status": "streaming"}) == 1
    assert await store.update_call("missing", {"call_status": "streaming"}) == 0
    assert store.calls["abc"]["call_status"] == "streaming"
    assert await store.fetch_one("ai_agent_configs", {"is_active": True}) == {
        "agent_name": "Riley",
        "is_active": True,
    }
    assert await store.fetch_one("ai_agent_configs", {"is_active": False}) is None
    assert await store.fetch_one("company_settings") is None


@pytest.mark.asyncio
async def test_fetch_rows_orders_and_limits():
    requests = []
    store = make_store(
        lambda request: httpx.Response(200, json=[{"id": 2}, {"id": 1}]), requests
    )

    rows = await store.fetch_rows("jobs", {"client_id": 7}, order="created_at.desc", limit=5)
    await store.close()

    assert rows == [{"id": 2}, {"id": 1}]
    params = requests[0].url.params
    assert requests[0].url.path == "/rest/v1/jobs"
    assert params["client_id"] == "eq.7"
    assert params["order"] == "created_at.desc"
    assert params["limit"] == "5"


@pytest.mark.asyncio
async def test_fetch_rows_http_error_raises_store_error():
    store = make_store(lambda request: httpx.Response(404, json={"message": "no table"}), [])

    with pytest.raises(CallStoreError):
        await store.fetch_rows("clients", {"phone": "+15550100"})
    await store.close()


@pytest.mark.asyncio
async def test_in_memory_fetch_rows_sorts_and_limits():
    store = InMemoryCallStore(
        tables={
            "jobs": [
                {"id": 1, "client_id": 7, "created_at": "2026-01-01T00:00:00Z"},
                {"id": 2, "client_id": 8, "created_at": "2026-03-01T00:00:00Z"},
                {"id": 3, "client_id": 7, "created_at": "2026-02-01T00:00:00Z"},
                {"id": 4, "client_id": 7, "created_at": "2025-12-01T00:00:00Z"},
            ]
        }
    )

    rows = await store.fetch_rows("jobs", {"client_id": 7}, order="created_at.desc", limit=2)

    assert [row["id"] for row in rows] == [3, 1]
    assert await store.fetch_rows("clients") == []


def test_create_call_store_selects_backend():
    with patch.object(call_store.settings, "SUPABASE_URL", None):
        assert isinstance(create_call_store(), InMemoryCallStore)

    with patch.object(call_store.settings, "SUPABASE_URL", "https://project.supabase.co"), \
            patch.object(call_store.settings, "SUPABASE_SERVICE_ROLE_KEY", "service-key"):
        assert isinstance(create_call_store(), SupabaseCallStore)
