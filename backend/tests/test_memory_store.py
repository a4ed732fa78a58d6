import pytest

from app.db.memory_store import MemoryDocumentStore
from app.db.store import DocumentNotFoundError, FilterOp, Query


@pytest.fixture
async def populated(store):
    await store.set("profiles", "u1", {"name": "Ada", "skills": ["Python"], "year": 2})
    await store.set("profiles", "u2", {"name": "Ben", "skills": ["React"], "year": 1})
    await store.set("profiles", "u3", {"name": "Cy", "skills": ["Python", "SQL"], "year": 3})
    return store


async def test_get_returns_copy_with_id(store):
    await store.set("teams", "t1", {"name": "Alpha", "members": []})

    team = await store.get("teams", "t1")
    assert team == {"id": "t1", "name": "Alpha", "members": []}

    team["members"].append("x")
    assert (await store.get("teams", "t1"))["members"] == []


async def test_get_missing_returns_none(store):
    assert await store.get("teams", "nope") is None


async def test_update_merges_fields(store):
    await store.set("profiles", "u1", {"name": "Ada", "year": 1})
    await store.update("profiles", "u1", {"year": 2})

    assert await store.get("profiles", "u1") == {"id": "u1", "name": "Ada", "year": 2}


async def test_update_missing_document_raises(store):
    with pytest.raises(DocumentNotFoundError):
        await store.update("profiles", "ghost", {"year": 2})


async def test_delete_missing_document_is_a_no_op(store):
    await store.delete("profiles", "ghost")


async def test_batch_is_all_or_nothing(store):
    await store.set("teams", "t1", {"name": "Alpha"})

    batch = store.batch()
    batch.update("teams", "t1", {"name": "Renamed"})
    batch.set("profiles", "u1", {"name": "Ada"})
    batch.update("conversations", "missing", {"participant_ids": []})

    with pytest.raises(DocumentNotFoundError):
        await store.commit(batch)

    assert (await store.get("teams", "t1"))["name"] == "Alpha"
    assert await store.get("profiles", "u1") is None


async def test_batch_update_sees_earlier_set_in_same_batch(store):
    batch = store.batch()
    batch.set("teams", "t1", {"name": "Alpha"})
    batch.update("teams", "t1", {"size": 1})
    await store.commit(batch)

    assert await store.get("teams", "t1") == {"id": "t1", "name": "Alpha", "size": 1}


async def test_query_filters(populated):
    python = await populated.query(
        Query("profiles").where("skills", FilterOp.ARRAY_CONTAINS, "Python")
    )
    assert [p["id"] for p in python] == ["u1", "u3"]

    not_u1 = await populated.query(Query("profiles").where("id", FilterOp.NEQ, "u1"))
    assert [p["id"] for p in not_u1] == ["u2", "u3"]

    some = await populated.query(Query("profiles").where("name", FilterOp.IN, ["Ben", "Cy"]))
    assert [p["id"] for p in some] == ["u2", "u3"]


async def test_query_order_and_limit(populated):
    newest_first = await populated.query(
        Query("profiles", order_by="year", descending=True, limit=2)
    )
    assert [p["id"] for p in newest_first] == ["u3", "u1"]


async def test_subscription_delivers_initial_and_updated_snapshots(store):
    snapshots = []
    query = Query("invitations").where("to_user_id", FilterOp.EQ, "u2")

    await store.subscribe(query, snapshots.append)
    await store.set("invitations", "i1", {"to_user_id": "u2"})
    await store.set("invitations", "i2", {"to_user_id": "someone-else"})
    await store.delete("invitations", "i1")

    assert [[d["id"] for d in s] for s in snapshots] == [[], ["i1"], ["i1"], []]


async def test_subscription_ignores_other_collections(store):
    snapshots = []
    await store.subscribe(Query("invitations"), snapshots.append)

    await store.set("teams", "t1", {"name": "Alpha"})

    assert snapshots == [[]]


async def test_cancelled_subscription_stops_delivery(store):
    snapshots = []
    subscription = await store.subscribe(Query("messages"), snapshots.append)

    await subscription.cancel()
    await subscription.cancel()
    await store.set("messages", "m1", {"text": "hi"})

    assert not subscription.active
    assert snapshots == [[]]


async def test_failing_callback_does_not_break_commit(store):
    def explode(_):
        raise RuntimeError("boom")

    await store.subscribe(Query("teams"), explode)
    await store.set("teams", "t1", {"name": "Alpha"})

    assert await store.get("teams", "t1") is not None


async def test_add_generates_id():
    store = MemoryDocumentStore()
    doc_id = await store.add("messages", {"text": "hello"})

    assert (await store.get("messages", doc_id))["text"] == "hello"
