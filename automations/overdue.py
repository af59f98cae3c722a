from datetime import datetime
from typing import Optional

from constants import TaskStatus
from database import tasks_collection
from logging_config import get_logger
from services.notification_engine import NotificationEngine, derive_overdue_notification
from utils.mongo import utc_now

logger = get_logger("overdue_automation")


async def notify_overdue_tasks(engine: NotificationEngine, tasks=tasks_collection, now: Optional[datetime] = None, limit: int = 500) -> int:
    """
    Sweep open tasks past their due date and send each assignee one overdue reminder.
    This is the trigger side; scheduling it is left to whoever runs the script.

    A handled task is stamped with ``overdue_notified_at`` and drops out of later
    sweeps, so ``limit`` only bounds one run. Reassigning the task or moving its due
    date clears the stamp. Returns the number of notifications created.
    """
    now = now or utc_now()
    overdue = await tasks.find({
        "due_date": {"$lt": now},
        "status": {"$ne": TaskStatus.COMPLETED},
        "assigned_to": {"$ne": None},
        "overdue_notified_at": None,
    }).sort("due_date", 1).limit(limit).to_list(limit)

    sent = 0
    for task in overdue:
        if derive_overdue_notification(task) is None:
            # Self-assigned: nothing to send, but it must not hold a slot forever
            await _stamp(tasks, task, now)
            continue
        if await engine.task_overdue(task):
            await _stamp(tasks, task, now)
            sent += 1
        # A failed write leaves the task unstamped so the next sweep retries it

    logger.info("Overdue sweep finished", extra={"data": {"candidates": len(overdue), "sent": sent}})
    return sent


async def _stamp(tasks, task, now: datetime):
    await tasks.update_one({"id": task["id"]}, {"$set": {"overdue_notified_at": now}})
