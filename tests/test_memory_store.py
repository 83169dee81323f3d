import asyncio
from datetime import datetime, timezone

import pytest

from sifsync.application.ports.remote_store import SERVER_TIMESTAMP, BatchUpdate, FieldFilter, QuerySpec
from sifsync.exceptions import RemoteStoreError
from sifsync.infrastructure.memory.memory_store import InMemoryDocumentStore

NOW = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)


async def next_snapshot(subscription):
    return await asyncio.wait_for(subscription.__anext__(), timeout=1)


@pytest.mark.asyncio
async def test_add_get_and_server_timestamp():
    store = InMemoryDocumentStore(clock=lambda: NOW)
    doc_id = await store.add("notifications", {"title": "hi", "createdAt": SERVER_TIMESTAMP})
    doc = await store.get("notifications", doc_id)
    assert doc.data == {"title": "hi", "createdAt": NOW}
    assert await store.get("notifications", "missing") is None


@pytest.mark.asyncio
async def test_set_merge_and_update():
    store = InMemoryDocumentStore()
    await store.set("c", "d", {"a": 1, "b": 2})
    await store.set("c", "d", {"b": 3}, merge=True)
    assert (await store.get("c", "d")).data == {"a": 1, "b": 3}
    await store.set("c", "d", {"z": 0})
    assert (await store.get("c", "d")).data == {"z": 0}
    await store.update("c", "d", {"z": 1})
    assert (await store.get("c", "d")).data == {"z": 1}
    with pytest.raises(RemoteStoreError):
        await store.update("c", "nope", {"z": 1})


@pytest.mark.asyncio
async def test_query_filters_orders_and_limits():
    store = InMemoryDocumentStore()
    for i, owner in enumerate(["u1", "u2", "u1", "u1"]):
        await store.set("n", f"d{i}", {"owner": owner, "rank": i})
    spec = QuerySpec("n", filters=(FieldFilter("owner", "==", "u1"),), order_by="rank", descending=True, limit=2)
    assert [d.id for d in await store.query(spec)] == ["d3", "d2"]
    with pytest.raises(RemoteStoreError):
        await store.query(QuerySpec("n", filters=(FieldFilter("owner", "~", "u1"),)))


@pytest.mark.asyncio
async def test_batch_is_all_or_nothing():
    store = InMemoryDocumentStore()
    await store.set("n", "a", {"isRead": False})
    with pytest.raises(RemoteStoreError):
        await store.commit_batch([
            BatchUpdate("n", "a", {"isRead": True}),
            BatchUpdate("n", "missing", {"isRead": True}),
        ])
    assert (await store.get("n", "a")).data["isRead"] is False

    await store.commit_batch([BatchUpdate("n", "a", {"isRead": True})])
    assert (await store.get("n", "a")).data["isRead"] is True


@pytest.mark.asyncio
async def test_query_watch_emits_initial_and_changes():
    store = InMemoryDocumentStore()
    await store.set("n", "a", {"owner": "u1"})
    sub = store.watch_query(QuerySpec("n", filters=(FieldFilter("owner", "==", "u1"),)))

    first = await next_snapshot(sub)
    assert [d.id for d in first.documents] == ["a"]

    await store.set("n", "b", {"owner": "u1"})
    second = await next_snapshot(sub)
    assert sorted(d.id for d in second.documents) == ["a", "b"]

    await store.delete("n", "a")
    third = await next_snapshot(sub)
    assert [d.id for d in third.documents] == ["b"]

    assert store.open_watch_count == 1
    sub.close()
    assert store.open_watch_count == 0


@pytest.mark.asyncio
async def test_document_watch_and_errors():
    store = InMemoryDocumentStore()
    sub = store.watch_document("prefs", "u1")
    assert (await next_snapshot(sub)).exists is False

    await store.set("prefs", "u1", {"isEnabled": True})
    snap = await next_snapshot(sub)
    assert snap.document.data == {"isEnabled": True}

    store.emit_error(RuntimeError("offline"))
    failed = await next_snapshot(sub)
    assert isinstance(failed.error, RuntimeError)
    sub.close()


@pytest.mark.asyncio
async def test_closed_subscription_stops_iteration():
    store = InMemoryDocumentStore()
    sub = store.watch_document("prefs", "u1")
    sub.close()
    received = [snapshot async for snapshot in sub]
    assert len(received) == 1
