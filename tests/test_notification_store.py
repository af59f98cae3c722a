import pytest
from pymongo.errors import DuplicateKeyError

from exceptions import NotificationValidationError, TransientStoreFailure
from middleware.db_guard import RecipientScopedCollection
from services.notification_store import NotificationStore
from tests.mongo_fakes import UnavailableCollection

pytestmark = pytest.mark.asyncio


def payload(**overrides):
    data = {
        "recipient": "user_y_id",
        "sender": "user_x_id",
        "type": "task_assigned",
        "title": "New Task Assigned",
        "message": "Xena assigned you a new task: 'Ship release'",
    }
    data.update(overrides)
    return data


async def test_insert_assigns_identity_and_unread_state(store, user_x, user_y):
    record = await store.insert(payload())
    assert record["id"]
    assert record["read"] is False
    assert record["read_at"] is None
    assert record["metadata"] == {}
    assert record["created_at"] is not None
    assert "_id" not in record


async def test_insert_ignores_server_managed_fields(store, db):
    record = await store.insert(payload(id="chosen", read=True, read_at="2026-01-01T00:00:00"))
    assert record["id"] != "chosen"
    assert record["read"] is False
    stored = await db.notifications.find_one({"id": record["id"]})
    assert stored["read"] is False
    assert stored["read_at"] is None


@pytest.mark.parametrize("bad", [
    {"recipient": None},
    {"type": "task_archived"},
    {"title": "   "},
    {"message": ""},
])
async def test_insert_rejects_invalid_payload(store, db, bad):
    with pytest.raises(NotificationValidationError) as exc_info:
        await store.insert(payload(**bad))
    assert exc_info.value.errors
    assert await db.notifications.count_documents({}) == 0


async def test_insert_rejects_missing_fields(store):
    with pytest.raises(NotificationValidationError) as exc_info:
        await store.insert({"recipient": "user_y_id"})
    fields = " ".join(exc_info.value.errors)
    assert "sender" in fields and "type" in fields


async def test_references_are_populated(store, db, user_x, user_y):
    await db.tasks.insert_one({"id": "task-1", "title": "Ship release", "status": "pending", "priority": "high"})
    record = await store.insert(payload(related_task="task-1"))

    assert record["sender"] == {"id": "user_x_id", "name": "Xena", "email": "xena@test.com", "avatar": user_x["avatar"]}
    assert record["recipient"]["name"] == "Yuri"
    assert record["related_task"] == {"id": "task-1", "title": "Ship release", "status": "pending", "priority": "high"}


async def test_dangling_references_keep_their_id(store):
    record = await store.insert(payload(sender="ghost", related_task="deleted-task"))
    assert record["sender"] == {"id": "ghost", "name": None, "email": None, "avatar": None}
    assert record["related_task"]["id"] == "deleted-task"
    assert record["related_task"]["title"] is None


async def test_find_by_recipient_is_newest_first_and_scoped(store):
    for i in range(3):
        await store.insert(payload(title=f"For Y {i}"))
    await store.insert(payload(recipient="user_z_id", title="For Z"))

    items = await store.find_by_recipient("user_y_id")
    assert [n["title"] for n in items] == ["For Y 2", "For Y 1", "For Y 0"]

    # A caller-supplied recipient cannot widen the scope
    items = await store.find_by_recipient("user_y_id", {"recipient": "user_z_id"})
    assert {n["recipient"]["id"] for n in items} == {"user_y_id"}
    assert await store.count_by_recipient("user_z_id") == 1


async def test_get_is_scoped_to_owner(store):
    record = await store.insert(payload())
    assert (await store.get("user_y_id", record["id"]))["id"] == record["id"]
    assert await store.get("user_z_id", record["id"]) is None


async def test_update_only_allows_read_state(store):
    record = await store.insert(payload())
    with pytest.raises(ValueError):
        await store.update_one("user_y_id", {"id": record["id"]}, {"title": "Changed"})
    with pytest.raises(ValueError):
        await store.update_many("user_y_id", {}, {"recipient": "user_z_id"})


async def test_delete_one_respects_owner(store, db):
    record = await store.insert(payload())
    assert await store.delete_one("user_z_id", {"id": record["id"]}) is False
    assert await db.notifications.count_documents({}) == 1
    assert await store.delete_one("user_y_id", {"id": record["id"]}) is True
    assert await db.notifications.count_documents({}) == 0


async def test_delete_many_requires_filter(store):
    with pytest.raises(ValueError):
        await store.delete_many({})


async def test_driver_failure_becomes_transient_error():
    store = NotificationStore(notifications=UnavailableCollection())
    with pytest.raises(TransientStoreFailure) as exc_info:
        await store.insert(payload())
    assert exc_info.value.operation == "insert"

    with pytest.raises(TransientStoreFailure):
        await store.find_by_recipient("user_y_id")
    with pytest.raises(TransientStoreFailure):
        await store.count_by_recipient("user_y_id")


async def test_ensure_indexes(store, db):
    await store.ensure_indexes()
    record = await store.insert(payload())
    with pytest.raises(DuplicateKeyError):
        await db.notifications.insert_one({**record, "recipient": "user_y_id"})


async def test_scoped_collection_requires_recipient(store):
    with pytest.raises(ValueError):
        RecipientScopedCollection(store._notifications, "")
