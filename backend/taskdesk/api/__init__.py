"""API router aggregator."""
from fastapi import APIRouter

from taskdesk.api.routes import admin, auth, tasks, users

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(admin.router)
api_router.include_router(tasks.router)

__all__ = ["api_router"]
