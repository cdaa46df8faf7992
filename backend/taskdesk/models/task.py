from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from taskdesk.core.database import Base

TASK_STATUSES = ("pending", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")


class Task(Base):
    """
    Task model with assignment and audit fields.

    assigned_to / assigned_by / created_by / updated_by are plain actor ids,
    not foreign keys: deleting a user never touches their tasks.
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    priority = Column(String(16), nullable=False, default="medium", index=True)
    assigned_to = Column(Integer, nullable=True, index=True)
    assigned_to_name = Column(String(200), nullable=True)
    assigned_by = Column(Integer, nullable=False, index=True)
    assigned_by_name = Column(String(200), nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    updated_by = Column(Integer, nullable=False, index=True)
    updated_by_name = Column(String(200), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
