import pytest

from voice_dispatch.services.call_store import InMemoryCallStore
from voice_dispatch.services.client_lookup import lookup_client


@pytest.mark.asyncio
async def test_lookup_returns_client_fields_and_newest_jobs():
    jobs = [
        {"id": i, "client_id": 1, "title": f"Job {i}", "created_at": f"2026-0{i}-01", "cost": 10}
        for i in range(1, 8)
    ]
    store = InMemoryCallStore(
        tables={
            "clients": [{"id": 1, "name": "Jane", "phone": "555-0100", "notes": "internal"}],
            "jobs": jobs,
        }
    )

    client = await lookup_client(store, "555-0100")

    assert client["name"] == "Jane"
    assert client["email"] is None
    assert "notes" not in client
    assert [job["id"] for job in client["recent_jobs"]] == [7, 6, 5, 4, 3]
    assert "cost" not in client["recent_jobs"][0]


@pytest.mark.asyncio
async def test_lookup_unknown_phone_returns_none():
    store = InMemoryCallStore(tables={"clients": [{"id": 1, "phone": "555-0100"}]})

    assert await lookup_client(store, "555-0199") is None


@pytest.mark.asyncio
async def test_lookup_client_without_id_has_no_jobs():
    store = InMemoryCallStore(
        tables={
            "clients": [{"name": "Jane", "phone": "555-0100"}],
            "jobs": [{"id": 1, "client_id": None, "created_at": "2026-01-01"}],
        }
    )

    client = await lookup_client(store, "555-0100")

    assert client["recent_jobs"] == []
