from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, Literal, List, Dict, Any
from datetime import datetime
import uuid

from utils.mongo import utc_now

NotificationType = Literal['task_assigned', 'task_updated', 'task_completed', 'task_overdue', 'task_comment']


class NotificationModel(BaseModel):
    """In-app notification delivered to a single recipient."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient: str  # Who receives the notification
    sender: str     # Whose action caused it
    type: NotificationType

    # Content
    title: str
    message: str

    # Reference
    related_task: Optional[str] = None

    # Context (changed fields, prior due date, ...). Free-form.
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # State
    read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("recipient", "sender", "title", "message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, value):
        return {} if value is None else value

    @model_validator(mode="after")
    def read_state_consistent(self):
        # read == True <=> read_at is set
        if self.read and self.read_at is None:
            raise ValueError("read_at is required when read is true")
        if not self.read and self.read_at is not None:
            raise ValueError("read_at must be empty while unread")
        return self


class UserSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None


class TaskSummary(BaseModel):
    id: str
    title: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None


class InboxPage(BaseModel):
    items: List[Dict[str, Any]]
    count: int   # Items on this page
    total: int
    page: int
    pages: int


class NotificationStats(BaseModel):
    total: int
    unread: int
    read: int
