"""
Notification derivation engine.

Maps task mutations to the notifications they should produce. The rules are
pure functions over before/after task state; ``NotificationEngine`` persists
whatever they derive through ``deliver_best_effort``, the single place in the
notification subsystem where errors are logged and dropped instead of raised.
A task mutation never fails because a notification could not be written.
"""

import asyncio
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from config import config
from constants import NOTIFIABLE_TASK_FIELDS, NotificationTypes, TaskStatus
from logging_config import get_logger
from utils.mongo import utc_now

logger = get_logger("notification_engine")

CHANGE_CLAUSES = {
    "status": lambda value: f" (Status changed to: {value})",
    "priority": lambda value: f" (Priority changed to: {value})",
    "due_date": lambda value: " (Due date updated)",
}


class Actor(BaseModel):
    """The identity performing a mutation."""
    id: str
    name: str


class TaskMutation(BaseModel):
    current: Dict[str, Any]
    actor: Actor
    previous: Optional[Dict[str, Any]] = None  # Absent on creation

    @property
    def is_creation(self) -> bool:
        return self.previous is None


class NotificationDraft(BaseModel):
    recipient: str
    sender: str
    type: str
    title: str
    message: str
    related_task: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


# --- Rules ---

def _should_notify(recipient: Optional[str], sender: Optional[str]) -> bool:
    # Self-notifications are dropped here, before anything is persisted
    return bool(recipient) and bool(sender) and recipient != sender


def _task_snapshot(task: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "task_priority": task.get("priority"),
        "task_status": task.get("status"),
        "task_due_date": task.get("due_date"),
    }


def assignment_triggered(mutation: TaskMutation) -> bool:
    """Creation with an assignee, or an update that changes the assignee."""
    assignee = mutation.current.get("assigned_to")
    if mutation.is_creation:
        return bool(assignee)
    return mutation.previous.get("assigned_to") != assignee


def changed_fields(mutation: TaskMutation) -> Dict[str, Dict[str, Any]]:
    """Notifiable fields that differ between previous and current state."""
    if mutation.is_creation:
        return {}
    changes = {}
    for field in NOTIFIABLE_TASK_FIELDS:
        old_val = mutation.previous.get(field)
        new_val = mutation.current.get(field)
        if old_val != new_val:
            changes[field] = {"from": old_val, "to": new_val}
    return changes


def assignment_rule(mutation: TaskMutation) -> Optional[NotificationDraft]:
    if not assignment_triggered(mutation):
        return None
    task, actor = mutation.current, mutation.actor
    recipient = task.get("assigned_to")
    if not _should_notify(recipient, actor.id):
        return None
    return NotificationDraft(
        recipient=recipient,
        sender=actor.id,
        type=NotificationTypes.TASK_ASSIGNED,
        title="New Task Assigned",
        message=f"{actor.name} assigned you a new task: '{task.get('title')}'",
        related_task=task.get("id"),
        metadata=_task_snapshot(task),
    )


def update_rule(mutation: TaskMutation) -> Optional[NotificationDraft]:
    # Assignment takes priority over a generic update for the same mutation
    if mutation.is_creation or assignment_triggered(mutation):
        return None
    changes = changed_fields(mutation)
    if not changes:
        return None
    task, actor = mutation.current, mutation.actor
    recipient = task.get("assigned_to")
    if not _should_notify(recipient, actor.id):
        return None

    message = f"{actor.name} updated the task: '{task.get('title')}'"
    for field in NOTIFIABLE_TASK_FIELDS:
        if field in changes:
            message += CHANGE_CLAUSES[field](changes[field]["to"])

    return NotificationDraft(
        recipient=recipient,
        sender=actor.id,
        type=NotificationTypes.TASK_UPDATED,
        title="Task Updated",
        message=message,
        related_task=task.get("id"),
        metadata={"changes": changes, **_task_snapshot(task)},
    )


def completion_rule(mutation: TaskMutation) -> Optional[NotificationDraft]:
    if mutation.is_creation:
        return None
    if mutation.previous.get("status") == TaskStatus.COMPLETED or mutation.current.get("status") != TaskStatus.COMPLETED:
        return None
    task, actor = mutation.current, mutation.actor
    recipient = task.get("created_by")
    if not _should_notify(recipient, actor.id):
        return None
    return NotificationDraft(
        recipient=recipient,
        sender=actor.id,
        type=NotificationTypes.TASK_COMPLETED,
        title="Task Completed",
        message=f"{actor.name} completed the task: '{task.get('title')}'",
        related_task=task.get("id"),
        metadata={
            "completed_at": task.get("completed_at") or utc_now(),
            "task_priority": task.get("priority"),
        },
    )


def derive_task_notifications(mutation: TaskMutation) -> List[NotificationDraft]:
    """Every notification a single task mutation produces, self-notifications removed."""
    drafts = [
        assignment_rule(mutation),
        update_rule(mutation),
        completion_rule(mutation),
    ]
    return [draft for draft in drafts if draft is not None]


def derive_overdue_notification(task: Dict[str, Any]) -> Optional[NotificationDraft]:
    """Compose the overdue reminder. Whether the task is overdue is the caller's call."""
    recipient = task.get("assigned_to")
    sender = task.get("created_by")
    if not _should_notify(recipient, sender):
        return None
    return NotificationDraft(
        recipient=recipient,
        sender=sender,
        type=NotificationTypes.TASK_OVERDUE,
        title="Task Overdue",
        message=f"Task '{task.get('title')}' is now overdue. Please complete it as soon as possible.",
        related_task=task.get("id"),
        metadata={
            "overdue_date": utc_now(),
            "task_priority": task.get("priority"),
            "task_due_date": task.get("due_date"),
        },
    )


# --- Persistence boundary ---

async def deliver_best_effort(store, draft: NotificationDraft, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
    """
    Persist one derived notification. Any failure (store down, validation,
    timeout) is logged and swallowed; returns None in that case.
    """
    try:
        insert = store.insert(draft.model_dump())
        if timeout:
            return await asyncio.wait_for(insert, timeout=timeout)
        return await insert
    except Exception as e:
        logger.error(
            f"Failed to create {draft.type} notification: {e!r}",
            exc_info=True,
            extra={"data": {"type": draft.type, "recipient": draft.recipient, "task_id": draft.related_task}}
        )
        return None


class NotificationEngine:
    def __init__(self, store, timeout: Optional[float] = None):
        self.store = store
        self.timeout = timeout if timeout is not None else config.NOTIFICATION_WRITE_TIMEOUT_SECONDS

    async def _emit(self, drafts: List[NotificationDraft], event: str, task_id: Optional[str]) -> List[Dict[str, Any]]:
        if not drafts:
            logger.debug(f"No notifications for {event}", extra={"data": {"task_id": task_id}})
            return []
        # Each draft is isolated: one failed write never stops the others
        results = await asyncio.gather(*(deliver_best_effort(self.store, d, self.timeout) for d in drafts))
        created = [r for r in results if r is not None]
        logger.info(
            f"Notifications sent for {event}",
            extra={"data": {"task_id": task_id, "derived": len(drafts), "created": len(created), "types": [d.type for d in drafts]}}
        )
        return created

    async def task_created(self, task: Dict[str, Any], actor: Actor) -> List[Dict[str, Any]]:
        mutation = TaskMutation(current=task, actor=actor)
        return await self._emit(derive_task_notifications(mutation), "task_created", task.get("id"))

    async def task_updated(self, previous: Dict[str, Any], current: Dict[str, Any], actor: Actor) -> List[Dict[str, Any]]:
        mutation = TaskMutation(previous=previous, current=current, actor=actor)
        return await self._emit(derive_task_notifications(mutation), "task_updated", current.get("id"))

    async def task_overdue(self, task: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        draft = derive_overdue_notification(task)
        created = await self._emit([draft] if draft else [], "task_overdue", task.get("id"))
        return created[0] if created else None
