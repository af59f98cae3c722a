import pytest

from config import config
from services import inbox, read_state

pytestmark = pytest.mark.asyncio


async def seed(store, count, recipient="user_y_id"):
    records = []
    for i in range(count):
        records.append(await store.insert({
            "recipient": recipient,
            "sender": "user_x_id",
            "type": "task_assigned",
            "title": f"Notification {i}",
            "message": "Xena assigned you a new task",
        }))
    return records


async def test_pages_cover_inbox_without_gaps_or_duplicates(store):
    records = await seed(store, 23)
    expected = [r["id"] for r in reversed(records)]

    seen = []
    for page in range(1, 6):
        result = await inbox.list_for_recipient(store, "user_y_id", page=page, page_size=5)
        assert result.total == 23
        assert result.pages == 5
        assert result.count == len(result.items)
        seen.extend(n["id"] for n in result.items)

    assert seen == expected
    assert len(set(seen)) == 23


async def test_out_of_range_page_is_empty(store):
    await seed(store, 3)
    result = await inbox.list_for_recipient(store, "user_y_id", page=4, page_size=5)
    assert result.items == []
    assert result.count == 0
    assert result.total == 3
    assert result.pages == 1


async def test_empty_inbox(store):
    result = await inbox.list_for_recipient(store, "user_y_id")
    assert result.items == []
    assert result.total == 0
    assert result.pages == 0


async def test_read_filter(store):
    records = await seed(store, 4)
    await read_state.mark_as_read(store, records[0]["id"], "user_y_id")

    unread = await inbox.list_for_recipient(store, "user_y_id", read=False)
    assert unread.total == 3
    assert all(not n["read"] for n in unread.items)

    read = await inbox.list_for_recipient(store, "user_y_id", read=True)
    assert [n["id"] for n in read.items] == [records[0]["id"]]


async def test_listing_is_scoped_to_recipient(store):
    await seed(store, 2)
    await seed(store, 5, recipient="user_z_id")
    result = await inbox.list_for_recipient(store, "user_y_id")
    assert result.total == 2
    assert {n["recipient"]["id"] for n in result.items} == {"user_y_id"}


async def test_page_size_is_clamped():
    assert inbox.clamp_page_size(None) == config.NOTIFICATION_PAGE_SIZE
    assert inbox.clamp_page_size(0) == config.NOTIFICATION_PAGE_SIZE
    assert inbox.clamp_page_size(-3) == 1
    assert inbox.clamp_page_size(10_000) == config.NOTIFICATION_MAX_PAGE_SIZE


async def test_stats(store):
    records = await seed(store, 3)
    await read_state.mark_as_read(store, records[1]["id"], "user_y_id")
    stats = await inbox.notification_stats(store, "user_y_id")
    assert (stats.total, stats.unread, stats.read) == (3, 2, 1)
