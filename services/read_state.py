"""
Read/unread transitions for a recipient's notifications.

unread -> read is the only transition. ``read_at`` is written exactly once, when
a record leaves the unread state, and is never touched again.
"""

from typing import Any, Dict

from exceptions import NotificationNotFound, NotificationValidationError
from logging_config import get_logger
from utils.mongo import utc_now

logger = get_logger("read_state")


async def mark_as_read(store, notification_id: str, recipient_id: str) -> Dict[str, Any]:
    """Mark one notification read. Idempotent: an already-read record comes back unchanged."""
    updated = await store.update_one(
        recipient_id,
        {"id": notification_id, "read": False},
        {"read": True, "read_at": utc_now()}
    )
    if updated is not None:
        logger.info("Notification marked as read", extra={"data": {"notification_id": notification_id}})
        return updated

    # Nothing unread matched: either already read or not ours
    existing = await store.get(recipient_id, notification_id)
    if existing is None:
        logger.warning("Notification not found for mark-as-read", extra={"data": {"notification_id": notification_id}})
        raise NotificationNotFound(notification_id)
    return existing


async def mark_all_as_read(store, recipient_id: str) -> Dict[str, Any]:
    """
    Mark every unread notification of the recipient read with one shared timestamp.
    Records that were already read keep their original read_at.
    """
    read_at = utc_now()
    count = await store.update_many(
        recipient_id,
        {"read": False},
        {"read": True, "read_at": read_at}
    )
    logger.info("All notifications marked as read", extra={"data": {"updated": count}})
    return {"updated": count, "read_at": read_at}


async def delete_notification(store, notification_id: str, recipient_id: str) -> None:
    deleted = await store.delete_one(recipient_id, {"id": notification_id})
    if not deleted:
        logger.warning("Notification not found for delete", extra={"data": {"notification_id": notification_id}})
        raise NotificationNotFound(notification_id)
    logger.info("Notification deleted", extra={"data": {"notification_id": notification_id}})


async def create_notification(store, sender_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Administrative creation path. The sender is always the caller, whatever the
    payload says. Validation errors propagate to the caller.
    """
    if not isinstance(payload, dict):
        raise NotificationValidationError("Notification payload must be an object")
    data = {k: v for k, v in payload.items() if k != "sender"}
    data["sender"] = sender_id
    notification = await store.insert(data)
    logger.info(
        "Notification created manually",
        extra={"data": {"notification_id": notification["id"], "type": notification["type"]}}
    )
    return notification
