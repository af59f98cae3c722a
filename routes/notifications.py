from fastapi import APIRouter, Body, Depends, Query
from typing import Any, Dict, Optional
from config import config
from models.notification import InboxPage, NotificationStats
from models.user import UserModel
from routes.deps import get_current_user, get_notification_store
from services import inbox, read_state
from services.notification_store import NotificationStore
from logging_config import get_logger

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])
logger = get_logger("notifications")


@router.get("", response_model=InboxPage)
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(config.NOTIFICATION_PAGE_SIZE, ge=1, le=config.NOTIFICATION_MAX_PAGE_SIZE),
    read: Optional[bool] = None,
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    """Paginated inbox for the current user, newest first."""
    return await inbox.list_for_recipient(store, current_user.id, page=page, page_size=limit, read=read)


@router.get("/unread-count")
async def get_unread_count(
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    """Get count of unread notifications."""
    count = await inbox.count_unread(store, current_user.id)
    return {"count": count}


@router.get("/stats", response_model=NotificationStats)
async def get_stats(
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    return await inbox.notification_stats(store, current_user.id)


@router.put("/mark-all-read")
async def mark_all_read(
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    """Mark all notifications as read for the current user."""
    result = await read_state.mark_all_as_read(store, current_user.id)
    return {"message": "All notifications marked as read", **result}


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    """Mark a notification as read."""
    return await read_state.mark_as_read(store, notification_id, current_user.id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    await read_state.delete_notification(store, notification_id, current_user.id)
    return {"message": "Notification deleted successfully"}


@router.post("", status_code=201)
async def create_notification(
    payload: Dict[str, Any] = Body(...),
    current_user: UserModel = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store)
):
    """Create a notification manually (admin/testing). The sender is always the caller."""
    return await read_state.create_notification(store, current_user.id, payload)
