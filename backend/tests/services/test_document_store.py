import asyncio
import pytest
from datetime import date
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from backend.app.exceptions import (
    CollaboratorTimeoutError, ConflictError, NotFoundError, UnavailableError, ValidationError
)
from backend.app.store import MemoryDocumentStore, SqlDocumentStore

@pytest.fixture(params=["sql", "memory"])
def any_store(request, store, memory_store):
    """Both store implementations must behave the same"""
    return store if request.param == "sql" else memory_store

async def test_create_and_get(any_store):
    user_id = await any_store.create("users", {"email": "a@example.com", "display_name": "A"})

    record = await any_store.get("users", user_id)
    assert record["id"] == user_id
    assert record["email"] == "a@example.com"
    assert record["couple_id"] is None
    assert record["created_at"] is not None
    assert record["updated_at"] is not None

async def test_create_with_given_id(any_store):
    assert await any_store.create("users", {"id": "u-1", "email": "a@example.com"}) == "u-1"

async def test_get_missing_record(any_store):
    with pytest.raises(NotFoundError):
        await any_store.get("users", "missing")

async def test_query_filters_and_orders(any_store):
    for title, day, recurring in [("b", date(2021, 5, 1), True), ("a", date(2020, 1, 1), True), ("c", date(2022, 1, 1), False)]:
        await any_store.create("anniversaries", {
            "couple_id": "c1", "title": title, "date": day, "type": "custom", "is_recurring": recurring,
        })
    await any_store.create("anniversaries", {
        "couple_id": "c2", "title": "other", "date": date(2019, 1, 1), "type": "custom", "is_recurring": True,
    })

    records = await any_store.query("anniversaries", {"couple_id": "c1"}, order_by="date")
    assert [r["title"] for r in records] == ["a", "b", "c"]

    records = await any_store.query("anniversaries", {"couple_id": "c1"}, order_by="date", descending=True)
    assert [r["title"] for r in records] == ["c", "b", "a"]

    records = await any_store.query("anniversaries", {"couple_id": "c1", "is_recurring": True})
    assert sorted(r["title"] for r in records) == ["a", "b"]

async def test_conditional_update(any_store):
    user_id = await any_store.create("users", {"email": "a@example.com"})

    await any_store.update("users", user_id, {"couple_id": "c1"}, expected={"couple_id": None})
    assert (await any_store.get("users", user_id))["couple_id"] == "c1"

    with pytest.raises(ConflictError):
        await any_store.update("users", user_id, {"couple_id": "c2"}, expected={"couple_id": None})
    assert (await any_store.get("users", user_id))["couple_id"] == "c1"

async def test_update_missing_record(any_store):
    with pytest.raises(NotFoundError):
        await any_store.update("users", "missing", {"display_name": "x"})

async def test_delete(any_store):
    user_id = await any_store.create("users", {"email": "a@example.com"})
    await any_store.delete("users", user_id)

    with pytest.raises(NotFoundError):
        await any_store.get("users", user_id)
    with pytest.raises(NotFoundError):
        await any_store.delete("users", user_id)

async def test_unknown_collection_and_field(any_store):
    with pytest.raises(ValidationError):
        await any_store.get("photos", "p1")
    with pytest.raises(ValidationError):
        await any_store.query("users", {"nickname": "x"})

async def test_records_are_copies(memory_store):
    user_id = await memory_store.create("users", {"email": "a@example.com"})
    record = await memory_store.get("users", user_id)
    record["email"] = "changed@example.com"
    assert (await memory_store.get("users", user_id))["email"] == "a@example.com"

async def test_duplicate_email_conflicts(store):
    await store.create("users", {"email": "a@example.com"})
    with pytest.raises(ConflictError):
        await store.create("users", {"email": "a@example.com"})

async def test_database_errors_become_unavailable():
    session = MagicMock()
    session.__aenter__.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
    sql_store = SqlDocumentStore(MagicMock(return_value=session))

    with pytest.raises(UnavailableError) as excinfo:
        await sql_store.get("users", "u1")
    assert "database unavailable" in str(excinfo.value)

async def test_slow_calls_time_out():
    class SlowStore(MemoryDocumentStore):
        async def _get(self, collection, record_id):
            await asyncio.sleep(1)

    with pytest.raises(CollaboratorTimeoutError) as excinfo:
        await SlowStore(timeout=0.01).get("users", "u1")
    assert isinstance(excinfo.value, TimeoutError)
    assert "timed out" in str(excinfo.value)
