from fastapi import APIRouter, Body, HTTPException, Depends, Query
from typing import Optional
from constants import TaskStatus
from database import tasks_collection
from models.task import TaskModel, TaskUpdate
from models.user import UserModel
from routes.deps import get_current_user, get_notification_engine
from services.notification_engine import Actor, NotificationEngine
from logging_config import get_logger
from utils.mongo import parse_mongo_data, to_naive_utc, utc_now

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])
logger = get_logger("tasks")


def _actor(user: UserModel) -> Actor:
    return Actor(id=user.id, name=user.name)


async def _get_task_or_404(task_id: str) -> dict:
    task = await tasks_collection.find_one({"id": task_id})
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


# --- ENDPOINTS ---

@router.post("", status_code=201)
async def create_task(
    task: TaskModel = Body(...),
    current_user: UserModel = Depends(get_current_user),
    engine: NotificationEngine = Depends(get_notification_engine)
):
    """Create a new task; the assignee is notified unless they created it."""
    task.created_by = current_user.id
    task.due_date = to_naive_utc(task.due_date)
    if task.status == TaskStatus.COMPLETED:
        task.completed_at = utc_now()

    doc = task.model_dump()
    await tasks_collection.insert_one(doc)
    created_task = parse_mongo_data(doc)

    # Best-effort: never raises
    await engine.task_created(created_task, _actor(current_user))

    logger.info(f"Task created", extra={"data": {"task_id": task.id, "title": task.title, "assigned_to": task.assigned_to}})
    return created_task


@router.get("")
async def list_tasks(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: UserModel = Depends(get_current_user)
):
    """Tasks the current user created or is assigned to, newest first."""
    query = {"$or": [{"assigned_to": current_user.id}, {"created_by": current_user.id}]}
    if status and status != 'all':
        query["status"] = status
    if priority and priority != 'all':
        query["priority"] = priority

    total = await tasks_collection.count_documents(query)
    tasks = await tasks_collection.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit).to_list(limit)
    return {
        "data": parse_mongo_data(tasks),
        "total": total,
        "page": page,
        "limit": limit
    }


@router.get("/{task_id}")
async def get_task(task_id: str, current_user: UserModel = Depends(get_current_user)):
    return parse_mongo_data(await _get_task_or_404(task_id))


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    update: TaskUpdate = Body(...),
    current_user: UserModel = Depends(get_current_user),
    engine: NotificationEngine = Depends(get_notification_engine)
):
    """Update task (Creator or Assignee)"""
    existing_task = await _get_task_or_404(task_id)

    if current_user.id not in (existing_task.get("created_by"), existing_task.get("assigned_to")):
        logger.warning(f"Task update denied: not authorized", extra={"data": {"task_id": task_id}})
        raise HTTPException(status_code=403, detail="Not authorized to update this task")

    update_data = {k: to_naive_utc(v) for k, v in update.model_dump(exclude_unset=True).items()}

    # Calculate Changes
    changes = {k: v for k, v in update_data.items() if existing_task.get(k) != v}
    if not changes:
        return parse_mongo_data(existing_task)

    if "status" in changes:
        changes["completed_at"] = utc_now() if changes["status"] == TaskStatus.COMPLETED else None
    if "assigned_to" in changes or "due_date" in changes:
        # New assignee or deadline: the overdue reminder is owed again
        changes["overdue_notified_at"] = None
    changes["updated_at"] = utc_now()

    await tasks_collection.update_one({"id": task_id}, {"$set": changes})
    updated_task = parse_mongo_data(await tasks_collection.find_one({"id": task_id}))

    # Best-effort: never raises
    await engine.task_updated(parse_mongo_data(existing_task), updated_task, _actor(current_user))

    logger.info(f"Task updated", extra={"data": {"task_id": task_id, "fields_changed": [k for k in changes if k not in ("updated_at", "overdue_notified_at")]}})
    return updated_task


@router.delete("/{task_id}")
async def delete_task(task_id: str, current_user: UserModel = Depends(get_current_user)):
    """Hard delete task (Creator only)"""
    existing_task = await _get_task_or_404(task_id)
    if existing_task.get("created_by") != current_user.id:
        logger.warning(f"Task deletion denied: not the creator", extra={"data": {"task_id": task_id}})
        raise HTTPException(status_code=403, detail="Only the creator can delete this task")

    await tasks_collection.delete_one({"id": task_id})
    logger.info(f"Task deleted", extra={"data": {"task_id": task_id}})
    return {"message": "Task deleted successfully"}
