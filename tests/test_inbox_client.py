import asyncio
from datetime import timedelta

import httpx
import pytest
from httpx import ASGITransport

from exceptions import NotificationNotFound
from inbox_client.api import InboxApi
from inbox_client.cache import InboxCache
from inbox_client.sync import InboxSync
from main import app
from routes.deps import create_access_token


def item(notification_id, read=False, read_at=None):
    return {"id": notification_id, "read": read, "read_at": read_at, "title": notification_id}


# --- Cache transitions ---

def test_first_page_replaces_state_and_estimates_unread():
    cache = InboxCache()
    cache.start_loading()
    assert cache.state.loading is True

    cache.replace_first_page([item("a"), item("b", read=True, read_at="t0")], pages=2)
    assert [n["id"] for n in cache.state.notifications] == ["a", "b"]
    assert cache.state.unread_count == 1
    assert cache.state.has_more is True
    assert cache.state.loading is False


def test_append_page_tracks_has_more():
    cache = InboxCache()
    cache.replace_first_page([item("a")], pages=2)
    cache.append_page([item("b")], page=2, pages=2)
    assert [n["id"] for n in cache.state.notifications] == ["a", "b"]
    assert cache.state.page == 2
    assert cache.state.has_more is False


def test_mark_read_decrements_only_for_unread_items():
    cache = InboxCache()
    cache.replace_first_page([item("a"), item("b", read=True, read_at="t0")], pages=1)
    cache.set_unread_count(1)

    assert cache.mark_read("b", "t1") is False
    assert cache.state.unread_count == 1
    assert cache.mark_read("a", "t1") is True
    assert cache.state.unread_count == 0
    assert cache.mark_read("missing") is False
    assert cache.state.unread_count == 0


def test_counter_never_goes_negative():
    cache = InboxCache()
    cache.replace_first_page([item("a"), item("b")], pages=1)
    cache.set_unread_count(0)
    cache.mark_read("a", "t1")
    cache.remove("b")
    assert cache.state.unread_count == 0
    cache.set_unread_count(-5)
    assert cache.state.unread_count == 0


def test_mark_all_read_keeps_existing_read_at():
    cache = InboxCache()
    cache.replace_first_page([item("a"), item("b", read=True, read_at="t0")], pages=1)
    cache.mark_all_read("t1")
    by_id = {n["id"]: n for n in cache.state.notifications}
    assert by_id["a"]["read_at"] == "t1"
    assert by_id["b"]["read_at"] == "t0"
    assert cache.state.unread_count == 0


def test_remove_adjusts_counter_by_read_state():
    cache = InboxCache()
    cache.replace_first_page([item("a"), item("b", read=True, read_at="t0")], pages=1)
    assert cache.remove("b") is True
    assert cache.state.unread_count == 1
    assert cache.remove("a") is True
    assert cache.state.unread_count == 0
    assert cache.remove("a") is False


def test_fail_and_clear():
    cache = InboxCache()
    cache.start_loading()
    cache.fail("Failed to fetch notifications")
    assert cache.state.error == "Failed to fetch notifications"
    assert cache.state.loading is False
    cache.clear()
    assert cache.state.notifications == []
    assert cache.state.error is None


# --- Sync against the app ---

@pytest.fixture
def y_token(user_y):
    return create_access_token(data={"sub": user_y["id"]}, expires_delta=timedelta(minutes=60))


@pytest.fixture
async def api():
    client = httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
    async with InboxApi(client=client) as inbox_api:
        yield inbox_api


async def seed(store, count, recipient="user_y_id"):
    return [
        await store.insert({
            "recipient": recipient,
            "sender": "user_x_id",
            "type": "task_assigned",
            "title": f"Notification {i}",
            "message": "Xena assigned you a new task",
        })
        for i in range(count)
    ]


@pytest.mark.asyncio
async def test_refresh_and_load_more(api, store, y_token, user_x):
    await seed(store, 5)
    sync = InboxSync(api, lambda: y_token, page_size=3)

    await sync.refresh()
    assert [n["title"] for n in sync.state.notifications] == ["Notification 4", "Notification 3", "Notification 2"]
    assert sync.state.unread_count == 5  # Reconciled with the server, not the page estimate
    assert sync.state.has_more is True

    assert await sync.load_more() is True
    assert len(sync.state.notifications) == 5
    assert sync.state.has_more is False
    assert await sync.load_more() is False


@pytest.mark.asyncio
async def test_actions_mirror_server_state(api, store, y_token, user_x):
    records = await seed(store, 3)
    sync = InboxSync(api, lambda: y_token)
    await sync.refresh()

    await sync.mark_as_read(records[0]["id"])
    assert sync.state.unread_count == 2
    local = next(n for n in sync.state.notifications if n["id"] == records[0]["id"])
    assert local["read"] is True

    await sync.delete(records[1]["id"])
    assert sync.state.unread_count == 1
    assert records[1]["id"] not in [n["id"] for n in sync.state.notifications]

    await sync.mark_all_as_read()
    assert sync.state.unread_count == 0

    # A refetch agrees with the local state
    before = [(n["id"], n["read"], n["read_at"]) for n in sync.state.notifications]
    await sync.refresh()
    after = [(n["id"], n["read"], n["read_at"]) for n in sync.state.notifications]
    assert before == after
    assert sync.state.unread_count == 0


@pytest.mark.asyncio
async def test_missing_notification_raises_not_found(api, y_token):
    sync = InboxSync(api, lambda: y_token)
    with pytest.raises(NotificationNotFound):
        await sync.mark_as_read("missing")


@pytest.mark.asyncio
async def test_logged_out_actions_are_no_ops(api, store):
    await seed(store, 2)
    sync = InboxSync(api, lambda: None)
    await sync.refresh()
    await sync.mark_all_as_read()
    assert await sync.reconcile_unread_count() is None
    assert sync.state.notifications == []


@pytest.mark.asyncio
async def test_fetch_failure_sets_error(api):
    sync = InboxSync(api, lambda: "not-a-valid-token")
    with pytest.raises(httpx.HTTPStatusError):
        await sync.refresh()
    assert sync.state.error == "Failed to fetch notifications"
    assert sync.state.loading is False


@pytest.mark.asyncio
async def test_polling_reconciles_unread_count(api, store, y_token):
    sync = InboxSync(api, lambda: y_token, poll_interval=0.01)
    sync.start_polling()
    await seed(store, 2)
    for _ in range(100):
        if sync.state.unread_count == 2:
            break
        await asyncio.sleep(0.01)
    assert sync.state.unread_count == 2

    await sync.logout()
    assert sync.state.unread_count == 0
    assert sync._poll_task is None


class BrokenPageApi:
    """Lists fail with a non-HTTP error once, then serve one item per page."""

    def __init__(self):
        self.calls = 0

    async def list_notifications(self, token, page=1, limit=None, read=None):
        self.calls += 1
        if self.calls == 2:
            raise ValueError("malformed response body")
        return {"items": [item(f"n{page}")], "pages": 3}

    async def unread_count(self, token):
        return 3


@pytest.mark.asyncio
async def test_unexpected_fetch_error_does_not_leave_loading_stuck():
    sync = InboxSync(BrokenPageApi(), lambda: "token")
    await sync.refresh()

    with pytest.raises(ValueError):
        await sync.load_more()
    assert sync.state.loading is False
    assert sync.state.error == "Failed to fetch notifications"

    assert await sync.load_more() is True
    assert [n["id"] for n in sync.state.notifications] == ["n1", "n2"]
