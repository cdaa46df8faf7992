"""Route modules for the TaskDesk API."""
from . import admin, auth, tasks, users

__all__ = ["admin", "auth", "tasks", "users"]
