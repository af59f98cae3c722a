import asyncio
from typing import Callable, Optional

import httpx

from config import config
from inbox_client.api import InboxApi
from inbox_client.cache import InboxCache
from logging_config import get_logger

logger = get_logger("inbox_sync")

TokenProvider = Callable[[], Optional[str]]


class InboxSync:
    """
    Keeps an ``InboxCache`` in step with the server.

    Every user action goes to the server first; the local transition is applied
    only once the server has confirmed it, and a failure propagates to the caller
    so it can be retried. Without a token (logged out) actions are no-ops.
    """

    def __init__(self, api: InboxApi, token_provider: TokenProvider, page_size: Optional[int] = None, poll_interval: Optional[float] = None):
        self.api = api
        self.cache = InboxCache()
        self._token_provider = token_provider
        self.page_size = page_size or config.NOTIFICATION_PAGE_SIZE
        self.poll_interval = poll_interval or config.NOTIFICATION_POLL_INTERVAL_SECONDS
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def state(self):
        return self.cache.state

    def _token(self) -> Optional[str]:
        return self._token_provider()

    async def _fetch_page(self, token: str, page: int):
        self.cache.start_loading()
        try:
            return await self.api.list_notifications(token, page=page, limit=self.page_size)
        except Exception as e:
            # Any failure must clear the loading flag or load_more stays blocked
            logger.error(
                f"Error fetching notifications: {e}",
                exc_info=not isinstance(e, httpx.HTTPError),
                extra={"data": {"page": page}}
            )
            self.cache.fail("Failed to fetch notifications")
            raise

    async def refresh(self):
        """Reload page 1, then replace the estimated unread count with the server's."""
        token = self._token()
        if not token:
            return
        data = await self._fetch_page(token, 1)
        self.cache.replace_first_page(data["items"], data["pages"])
        await self.reconcile_unread_count()

    async def load_more(self) -> bool:
        if not self.state.has_more or self.state.loading:
            return False
        token = self._token()
        if not token:
            return False
        page = self.state.page + 1
        data = await self._fetch_page(token, page)
        self.cache.append_page(data["items"], page, data["pages"])
        return True

    async def reconcile_unread_count(self) -> Optional[int]:
        token = self._token()
        if not token:
            return None
        count = await self.api.unread_count(token)
        self.cache.set_unread_count(count)
        return count

    async def mark_as_read(self, notification_id: str):
        token = self._token()
        if not token:
            return
        record = await self.api.mark_read(token, notification_id)
        self.cache.mark_read(notification_id, record.get("read_at"))

    async def mark_all_as_read(self):
        token = self._token()
        if not token:
            return
        result = await self.api.mark_all_read(token)
        self.cache.mark_all_read(result.get("read_at"))

    async def delete(self, notification_id: str):
        token = self._token()
        if not token:
            return
        await self.api.delete(token, notification_id)
        self.cache.remove(notification_id)

    # --- Periodic reconciliation ---

    async def _poll_loop(self):
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.reconcile_unread_count()
            except Exception as e:
                # A missed tick only delays the badge; keep polling
                logger.warning(f"Error fetching unread count: {e}")

    def start_polling(self):
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop_polling(self):
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        try:
            await self._poll_task
        except asyncio.CancelledError:
            pass
        self._poll_task = None

    async def logout(self):
        await self.stop_polling()
        self.cache.clear()
