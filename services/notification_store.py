"""
Durable storage for notifications.

Owns identity assignment, validation on insert, the inbox query shape and the
read-time join that resolves sender / recipient / related task references into
display summaries. Every retrieval path goes through ``populate`` so callers
never see bare references.
"""

import functools
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from database import notifications_collection, tasks_collection, users_collection
from exceptions import NotificationValidationError, TransientStoreFailure
from logging_config import get_logger
from middleware.db_guard import RecipientScopedCollection
from models.notification import NotificationModel, TaskSummary, UserSummary
from utils.mongo import parse_mongo_data, utc_now

logger = get_logger("notification_store")

# Newest first; _id breaks ties between identical timestamps so pages never overlap
INBOX_SORT = [("created_at", DESCENDING), ("_id", DESCENDING)]

USER_PROJECTION = {"_id": 0, "id": 1, "name": 1, "email": 1, "avatar": 1}
TASK_PROJECTION = {"_id": 0, "id": 1, "title": 1, "status": 1, "priority": 1}

# Only read-state may change after creation
MUTABLE_FIELDS = frozenset({"read", "read_at"})

# Assigned by the store, never taken from the caller
SERVER_FIELDS = ("id", "read", "read_at", "created_at", "updated_at")


def store_operation(name: str):
    """Translate driver failures into TransientStoreFailure."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except PyMongoError as e:
                logger.error(
                    f"Notification store failure during {name}: {e}",
                    extra={"data": {"operation": name, "error": str(e)}}
                )
                raise TransientStoreFailure(name, e) from e
        return wrapper
    return decorator


def _format_errors(error: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
        for err in error.errors()
    ]


class NotificationStore:
    def __init__(self, notifications=notifications_collection, users=users_collection, tasks=tasks_collection):
        self._notifications = notifications
        self._users = users
        self._tasks = tasks

    def _scoped(self, recipient_id: str) -> RecipientScopedCollection:
        return RecipientScopedCollection(self._notifications, recipient_id)

    @staticmethod
    def _check_patch(patch: Dict[str, Any]):
        illegal = set(patch) - MUTABLE_FIELDS
        if illegal:
            raise ValueError(f"Immutable notification fields cannot be patched: {sorted(illegal)}")

    # --- Writes ---

    @store_operation("insert")
    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and persist a new notification. Returns the populated record."""
        payload = {k: v for k, v in data.items() if k not in SERVER_FIELDS}
        try:
            notification = NotificationModel(**payload)
        except ValidationError as e:
            errors = _format_errors(e)
            logger.warning("Notification rejected by validation", extra={"data": {"errors": errors}})
            raise NotificationValidationError("Invalid notification payload", errors=errors) from e

        doc = notification.model_dump()
        await self._notifications.insert_one(doc)
        logger.debug(
            "Notification stored",
            extra={"data": {"notification_id": notification.id, "type": notification.type, "recipient": notification.recipient}}
        )
        populated = await self.populate([doc])
        return populated[0]

    @store_operation("update_one")
    async def update_one(self, recipient_id: str, match: Dict[str, Any], patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Patch one owned notification; None when nothing matched."""
        self._check_patch(patch)
        updated = await self._scoped(recipient_id).find_one_and_update(
            match,
            {"$set": {**patch, "updated_at": utc_now()}},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            return None
        populated = await self.populate([updated])
        return populated[0]

    @store_operation("update_many")
    async def update_many(self, recipient_id: str, match: Dict[str, Any], patch: Dict[str, Any]) -> int:
        self._check_patch(patch)
        result = await self._scoped(recipient_id).update_many(
            match,
            {"$set": {**patch, "updated_at": utc_now()}}
        )
        return result.modified_count

    @store_operation("delete_one")
    async def delete_one(self, recipient_id: str, match: Dict[str, Any]) -> bool:
        result = await self._scoped(recipient_id).delete_one(match)
        return result.deleted_count > 0

    @store_operation("delete_many")
    async def delete_many(self, match: Dict[str, Any]) -> int:
        """System-wide delete (retention). Not recipient scoped."""
        if not match:
            raise ValueError("delete_many requires a non-empty filter")
        result = await self._notifications.delete_many(match)
        return result.deleted_count

    # --- Reads ---

    @store_operation("find_by_recipient")
    async def find_by_recipient(
        self,
        recipient_id: str,
        filter: Optional[Dict[str, Any]] = None,
        limit: int = 20,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """Recipient's notifications, newest first."""
        if limit < 1:
            return []
        cursor = self._scoped(recipient_id).find(filter or {}).sort(INBOX_SORT).skip(max(skip, 0)).limit(limit)
        docs = await cursor.to_list(length=limit)
        return await self.populate(docs)

    @store_operation("count_by_recipient")
    async def count_by_recipient(self, recipient_id: str, filter: Optional[Dict[str, Any]] = None) -> int:
        return await self._scoped(recipient_id).count_documents(filter or {})

    @store_operation("get")
    async def get(self, recipient_id: str, notification_id: str) -> Optional[Dict[str, Any]]:
        doc = await self._scoped(recipient_id).find_one({"id": notification_id})
        if doc is None:
            return None
        populated = await self.populate([doc])
        return populated[0]

    # --- Read-time join ---

    @store_operation("populate")
    async def populate(self, docs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Resolve sender/recipient to user summaries and related_task to a task summary."""
        docs = list(docs)
        if not docs:
            return []

        user_ids = {d[field] for d in docs for field in ("sender", "recipient") if isinstance(d.get(field), str)}
        task_ids = {d["related_task"] for d in docs if isinstance(d.get("related_task"), str)}

        users = {}
        if user_ids:
            found = await self._users.find({"id": {"$in": list(user_ids)}}, USER_PROJECTION).to_list(length=None)
            users = {u["id"]: u for u in found}

        tasks = {}
        if task_ids:
            found = await self._tasks.find({"id": {"$in": list(task_ids)}}, TASK_PROJECTION).to_list(length=None)
            tasks = {t["id"]: t for t in found}

        populated = []
        for doc in docs:
            item = parse_mongo_data(doc)
            for field in ("sender", "recipient"):
                ref = doc.get(field)
                if isinstance(ref, str):
                    item[field] = UserSummary(**{**users.get(ref, {}), "id": ref}).model_dump()
            task_ref = doc.get("related_task")
            if isinstance(task_ref, str):
                item["related_task"] = TaskSummary(**{**tasks.get(task_ref, {}), "id": task_ref}).model_dump()
            populated.append(item)
        return populated

    # --- Maintenance ---

    async def ensure_indexes(self):
        # Unread count: find({recipient: X, read: False})
        await self._notifications.create_index([("recipient", ASCENDING), ("read", ASCENDING)])
        # Inbox listing: find({recipient: X}).sort(created_at: -1)
        await self._notifications.create_index([("recipient", ASCENDING), ("created_at", DESCENDING)])
        await self._notifications.create_index([("related_task", ASCENDING)])
        await self._notifications.create_index([("id", ASCENDING)], unique=True)
        logger.info("Notification indexes ensured")
