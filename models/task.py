from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal, List
from datetime import datetime
import uuid

from utils.mongo import utc_now


class TaskModel(BaseModel):
    # Core Fields
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    tags: List[str] = Field(default_factory=list)

    # State
    status: Literal['pending', 'in-progress', 'completed'] = 'pending'
    priority: Literal['low', 'medium', 'high'] = 'medium'

    # Assignment
    assigned_to: Optional[str] = None # user_id
    created_by: Optional[str] = None # user_id (Set by backend)

    # Timing
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    overdue_notified_at: Optional[datetime] = None # Set by the overdue sweep
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True
    )


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = None
    status: Optional[Literal['pending', 'in-progress', 'completed']] = None
    priority: Optional[Literal['low', 'medium', 'high']] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
