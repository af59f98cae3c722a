from datetime import datetime, timedelta
from typing import Optional

from config import config
from logging_config import get_logger
from utils.mongo import utc_now

logger = get_logger("retention_automation")


async def cleanup_old_notifications(store, days: Optional[int] = None, now: Optional[datetime] = None) -> int:
    """Delete read notifications older than the retention window. Unread ones are kept."""
    days = days if days is not None else config.NOTIFICATION_RETENTION_DAYS
    cutoff = (now or utc_now()) - timedelta(days=days)

    deleted = await store.delete_many({"read": True, "created_at": {"$lt": cutoff}})
    logger.info(f"Cleaned up {deleted} old notifications", extra={"data": {"cutoff": cutoff, "days": days}})
    return deleted
