import math
from typing import Optional

from config import config
from logging_config import get_logger
from models.notification import InboxPage, NotificationStats

logger = get_logger("inbox")


def clamp_page_size(page_size: Optional[int]) -> int:
    if not page_size:
        return config.NOTIFICATION_PAGE_SIZE
    return max(1, min(page_size, config.NOTIFICATION_MAX_PAGE_SIZE))


async def list_for_recipient(
    store,
    recipient_id: str,
    page: int = 1,
    page_size: Optional[int] = None,
    read: Optional[bool] = None
) -> InboxPage:
    """One page of the recipient's inbox, newest first. Out-of-range pages are empty."""
    page = max(page or 1, 1)
    page_size = clamp_page_size(page_size)

    query = {}
    if read is not None:
        query["read"] = read

    total = await store.count_by_recipient(recipient_id, query)
    items = []
    if (page - 1) * page_size < total:
        items = await store.find_by_recipient(recipient_id, query, limit=page_size, skip=(page - 1) * page_size)

    return InboxPage(
        items=items,
        count=len(items),
        total=total,
        page=page,
        pages=math.ceil(total / page_size),
    )


async def count_unread(store, recipient_id: str) -> int:
    """Authoritative unread count, independent of any page."""
    return await store.count_by_recipient(recipient_id, {"read": False})


async def notification_stats(store, recipient_id: str) -> NotificationStats:
    total = await store.count_by_recipient(recipient_id)
    unread = await count_unread(store, recipient_id)
    return NotificationStats(total=total, unread=unread, read=total - unread)
