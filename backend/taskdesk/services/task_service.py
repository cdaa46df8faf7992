import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from taskdesk.core.errors import ValidationError
from taskdesk.models.task import TASK_STATUSES, Task
from taskdesk.schemas.task import TaskCreate, TaskUpdate
from taskdesk.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page, paginate
from taskdesk.services.validators import is_actor_id, like_pattern, parse_user_id

logger = logging.getLogger(__name__)

# Newest first; id breaks ties between rows created in the same clock tick
TASK_ORDERING = (Task.created_at.desc(), Task.id.desc())

# Columns that must never be nulled out by a partial update
_REQUIRED_COLUMNS = {"title", "status", "priority", "assigned_by", "assigned_by_name"}

USER_TASK_FIELDS = {
    "assignedBy": Task.assigned_by,
    "assignedTo": Task.assigned_to,
}


@dataclass
class TaskFilters:
    """One explicit field per supported filter dimension of the task listing."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    status: Optional[str] = None
    priority: Optional[str] = None
    # Raw query value; must parse as an integer user id
    assigned_to: Optional[Any] = None
    search: Optional[str] = None


class TaskService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_task(self, data: TaskCreate, actor_id: int, actor_name: str) -> Task:
        """Create a task stamped with the acting user as creator (and assigner unless delegated)."""
        if not is_actor_id(actor_id):
            raise ValidationError("Valid createdBy user ID is required")

        if data.assigned_by is not None and data.assigned_by != actor_id:
            # Delegated: the creator's name must not be paired with another user's id
            assigned_by = data.assigned_by
            assigned_by_name = data.assigned_by_name
        else:
            assigned_by = actor_id
            assigned_by_name = data.assigned_by_name or actor_name
        if not assigned_by_name or not assigned_by_name.strip():
            raise ValidationError("AssignedByName is required")

        task = Task(
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            assigned_to=data.assigned_to,
            assigned_to_name=data.assigned_to_name,
            assigned_by=assigned_by,
            assigned_by_name=assigned_by_name.strip(),
            created_by=actor_id,
            updated_by=actor_id,
            due_date=data.due_date,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info("Task %s created by user %s", task.id, actor_id)
        return task

    def get_task(self, task_id: int) -> Optional[Task]:
        return self.db.query(Task).filter(Task.id == task_id).first()

    def list_tasks(self, filters: TaskFilters) -> Page[Task]:
        query = self.db.query(Task)

        if filters.status:
            query = query.filter(Task.status == filters.status)
        if filters.priority:
            query = query.filter(Task.priority == filters.priority)
        if filters.assigned_to not in (None, ""):
            assigned_to = parse_user_id(filters.assigned_to, "Invalid assignedTo user ID format")
            query = query.filter(Task.assigned_to == assigned_to)
        if filters.search:
            pattern = like_pattern(filters.search)
            query = query.filter(
                or_(
                    Task.title.ilike(pattern, escape="\\"),
                    Task.description.ilike(pattern, escape="\\"),
                    Task.assigned_to_name.ilike(pattern, escape="\\"),
                    Task.assigned_by_name.ilike(pattern, escape="\\"),
                )
            )

        return paginate(query, filters.page, filters.limit, order_by=list(TASK_ORDERING))

    def list_by_user(
        self,
        user_id: int,
        role: str = "assignedTo",
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Task]:
        """Tasks a user assigned (role="assignedBy") or was assigned (role="assignedTo")."""
        if not is_actor_id(user_id):
            raise ValidationError("Invalid user ID format")
        column = USER_TASK_FIELDS.get(role)
        if column is None:
            raise ValidationError(f"Invalid type. Allowed types: {', '.join(USER_TASK_FIELDS)}")
        query = self.db.query(Task).filter(column == user_id)
        return paginate(query, page, limit, order_by=list(TASK_ORDERING))

    def update_task(self, task_id: int, data: TaskUpdate, updated_by: int) -> Optional[Task]:
        if not is_actor_id(updated_by):
            raise ValidationError("Valid updatedBy user ID is required")

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in _REQUIRED_COLUMNS:
                raise ValidationError(f"{to_camel(field)} cannot be null")

        task = self.get_task(task_id)
        if task is None:
            return None

        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_by = updated_by
        self.db.commit()
        self.db.refresh(task)
        return task

    def update_status(
        self,
        task_id: int,
        status: str,
        updated_by: Any,
        updated_by_name: Optional[str],
    ) -> Optional[Task]:
        if status not in TASK_STATUSES:
            raise ValidationError("Invalid status value")
        if not is_actor_id(updated_by) or updated_by == 0:
            raise ValidationError("Valid updatedBy user ID is required")
        if not updated_by_name or not updated_by_name.strip():
            raise ValidationError("UpdatedByName is required")

        task = self.get_task(task_id)
        if task is None:
            return None

        task.status = status
        task.updated_by = updated_by
        task.updated_by_name = updated_by_name.strip()
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        self.db.delete(task)
        self.db.commit()
        logger.info("Task %s deleted", task_id)
        return True

    def get_task_stats(self, user_id: Optional[int] = None) -> dict[str, int]:
        """Counts by status and priority, optionally limited to tasks a user assigned or holds."""

        def count_where(condition):
            return func.sum(case((condition, 1), else_=0))

        query = self.db.query(
            func.count(Task.id),
            count_where(Task.status == "pending"),
            count_where(Task.status == "in-progress"),
            count_where(Task.status == "completed"),
            count_where(Task.priority == "high"),
            count_where(Task.priority == "medium"),
            count_where(Task.priority == "low"),
        )
        if user_id is not None:
            if not is_actor_id(user_id):
                raise ValidationError("Invalid user ID format")
            query = query.filter(or_(Task.assigned_by == user_id, Task.assigned_to == user_id))

        row = query.one()
        keys = ("total", "pending", "in_progress", "completed", "high", "medium", "low")
        return {key: int(value or 0) for key, value in zip(keys, row)}

