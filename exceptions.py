"""Domain exceptions for the notification subsystem."""

from typing import Any, List, Optional


class NotificationError(Exception):
    """Base exception for notification errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotificationValidationError(NotificationError):
    """Malformed notification payload (missing field, unknown type)."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        self.errors = errors or []
        super().__init__(message)


class NotificationNotFound(NotificationError):
    """No notification with this id belongs to the acting recipient."""

    status_code = 404

    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__("Notification not found")


class TransientStoreFailure(NotificationError):
    """The persistence layer could not be reached; the caller may retry."""

    status_code = 503

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Notification store unavailable during {operation}, please retry")
