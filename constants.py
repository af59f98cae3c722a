# Global Constants

class NotificationTypes:
    TASK_ASSIGNED = "task_assigned"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"
    TASK_OVERDUE = "task_overdue"
    TASK_COMMENT = "task_comment"

    ALL = (TASK_ASSIGNED, TASK_UPDATED, TASK_COMPLETED, TASK_OVERDUE, TASK_COMMENT)


class TaskStatus:
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# Task fields whose change produces a "task updated" notification, in message order
NOTIFIABLE_TASK_FIELDS = ("status", "priority", "due_date")
