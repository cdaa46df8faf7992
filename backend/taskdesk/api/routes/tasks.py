from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from taskdesk.api.dependencies import get_current_identity, get_page_params, get_task_service
from taskdesk.core.errors import NotFoundError
from taskdesk.schemas.auth import TokenIdentity
from taskdesk.schemas.common import ApiResponse, MessageResponse, TaskListResponse
from taskdesk.schemas.task import TaskCreate, TaskRead, TaskStats, TaskStatusUpdate, TaskUpdate
from taskdesk.services.pagination import Page
from taskdesk.services.task_service import TaskFilters, TaskService

# All task routes require authentication
router = APIRouter(tags=["tasks"], dependencies=[Depends(get_current_identity)])

TASK_NOT_FOUND_MESSAGE = "Task not found"


def task_list_body(message: str, page: Page) -> dict:
    return {"message": message, "data": page.items, "pagination": page.meta("total_tasks")}


def actor_name(identity: TokenIdentity) -> str:
    return identity.full_name or identity.username


@router.post("/tasks", response_model=ApiResponse[TaskRead], status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    task_service: TaskService = Depends(get_task_service),
):
    task = task_service.create_task(payload, identity.user_id, actor_name(identity))
    return {"message": "Task created successfully", "data": task}


@router.get("/tasks", response_model=TaskListResponse[TaskRead])
async def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    search: Optional[str] = None,
    page_params: tuple[int, int] = Depends(get_page_params),
    task_service: TaskService = Depends(get_task_service),
):
    """List tasks with optional status/priority/assignee filters and free-text search"""
    page, limit = page_params
    filters = TaskFilters(
        page=page,
        limit=limit,
        status=status_filter,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
    )
    return task_list_body("Tasks retrieved successfully", task_service.list_tasks(filters))


# Declared before /tasks/{task_id} so "stats" is not parsed as an id
@router.get("/tasks/stats", response_model=ApiResponse[TaskStats])
async def get_task_stats(
    user_id: Optional[int] = Query(None, alias="userId"),
    task_service: TaskService = Depends(get_task_service),
):
    stats = task_service.get_task_stats(user_id)
    return {"message": "Task statistics retrieved successfully", "data": stats}


@router.get("/tasks/{task_id}", response_model=ApiResponse[TaskRead])
async def get_task(task_id: int, task_service: TaskService = Depends(get_task_service)):
    task = task_service.get_task(task_id)
    if task is None:
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return {"message": "Task retrieved successfully", "data": task}


@router.put("/tasks/{task_id}", response_model=ApiResponse[TaskRead])
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    task_service: TaskService = Depends(get_task_service),
):
    task = task_service.update_task(task_id, payload, updated_by=identity.user_id)
    if task is None:
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return {"message": "Task updated successfully", "data": task}


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: int, task_service: TaskService = Depends(get_task_service)):
    if not task_service.delete_task(task_id):
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return {"message": "Task deleted successfully"}


@router.patch("/tasks/{task_id}/status", response_model=ApiResponse[TaskRead])
async def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    task_service: TaskService = Depends(get_task_service),
):
    updated_by = payload.updated_by if payload.updated_by is not None else identity.user_id
    updated_by_name = payload.updated_by_name if payload.updated_by_name is not None else actor_name(identity)
    task = task_service.update_status(task_id, payload.status, updated_by, updated_by_name)
    if task is None:
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return {"message": "Task status updated successfully", "data": task}


@router.get("/my-tasks", response_model=TaskListResponse[TaskRead])
async def list_my_tasks(
    task_type: str = Query("assignedTo", alias="type"),
    page_params: tuple[int, int] = Depends(get_page_params),
    identity: TokenIdentity = Depends(get_current_identity),
    task_service: TaskService = Depends(get_task_service),
):
    """Tasks assigned to (default) or assigned by the authenticated user"""
    page, limit = page_params
    result = task_service.list_by_user(identity.user_id, task_type, page, limit)
    return task_list_body("My tasks retrieved successfully", result)


@router.get("/users/{user_id}/tasks", response_model=TaskListResponse[TaskRead])
async def list_user_tasks(
    user_id: int,
    task_type: str = Query("assignedTo", alias="type"),
    page_params: tuple[int, int] = Depends(get_page_params),
    task_service: TaskService = Depends(get_task_service),
):
    page, limit = page_params
    result = task_service.list_by_user(user_id, task_type, page, limit)
    return task_list_body(f"Tasks {task_type} by user retrieved successfully", result)
