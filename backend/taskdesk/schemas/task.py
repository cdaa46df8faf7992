from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from taskdesk.schemas.common import CamelModel

TaskStatus = Literal["pending", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]


class TaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = Field(default=None, max_length=200)
    # Delegated assignment; both default to the creating user when omitted
    assigned_by: Optional[int] = None
    assigned_by_name: Optional[str] = Field(default=None, max_length=200)
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("description", "assigned_to_name", "assigned_by_name")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = Field(default=None, max_length=200)
    assigned_by: Optional[int] = None
    assigned_by_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    due_date: Optional[datetime] = None

    @field_validator("title", "assigned_by_name")
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class TaskStatusUpdate(CamelModel):
    # Checked against the enum by the service so the error text stays stable
    status: str
    # Default to the authenticated user when omitted
    updated_by: Optional[int] = None
    updated_by_name: Optional[str] = None


class TaskRead(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = None
    assigned_by: int
    assigned_by_name: str
    created_by: int
    updated_by: int
    updated_by_name: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskStats(CamelModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
