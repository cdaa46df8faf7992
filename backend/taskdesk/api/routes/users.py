import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from taskdesk.api.dependencies import (
    get_current_identity,
    get_optional_identity,
    get_page_params,
    get_user_service,
)
from taskdesk.api.routes.auth import login
from taskdesk.core.errors import NotFoundError, PermissionDeniedError
from taskdesk.schemas.auth import LoginData, TokenIdentity
from taskdesk.schemas.common import ApiResponse, MessageResponse, UserListResponse
from taskdesk.schemas.user import ProfileUpdate, UserCreate, UserRead
from taskdesk.services.pagination import Page
from taskdesk.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

USER_NOT_FOUND_MESSAGE = "User not found"


def user_list_body(message: str, page: Page) -> dict:
    return {"message": message, "data": page.items, "pagination": page.meta("total_users")}


@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    identity: Optional[TokenIdentity] = Depends(get_optional_identity),
    user_service: UserService = Depends(get_user_service),
):
    """Register a new user"""
    wants_admin = payload.role == "admin" or "Admin" in payload.permissions
    # Only admins hand out admin rights; the very first account bootstraps itself
    if wants_admin and not (identity and identity.is_admin) and user_service.users_exist():
        raise PermissionDeniedError("Only admins can create admin users")

    user = user_service.create_user(payload, created_by=identity.user_id if identity else None)
    return {"message": "User created successfully", "data": user}


# Kept for clients that log in through the users resource
router.add_api_route("/login", login, methods=["POST"], response_model=ApiResponse[LoginData])


@router.get("", response_model=UserListResponse[UserRead])
async def list_users(
    search: Optional[str] = None,
    page_params: tuple[int, int] = Depends(get_page_params),
    _: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    page, limit = page_params
    result = user_service.list_users(page, limit, search)
    return user_list_body("Users retrieved successfully", result)


@router.get("/profile", response_model=ApiResponse[UserRead])
async def get_profile(
    identity: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.get_user(identity.user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User profile retrieved successfully", "data": user}


@router.put("/profile", response_model=ApiResponse[UserRead])
async def update_profile(
    payload: ProfileUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.update_user(identity.user_id, payload, updated_by=identity.user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User profile updated successfully", "data": user}


@router.delete("/profile", response_model=MessageResponse)
async def delete_profile(
    identity: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    if not user_service.delete_user(identity.user_id):
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User profile deleted successfully"}


@router.get("/username/{username}", response_model=ApiResponse[UserRead])
async def get_user_by_username(
    username: str,
    _: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.get_user_by_username(username)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User retrieved successfully", "data": user}


@router.get("/role/{role}", response_model=UserListResponse[UserRead])
async def list_users_by_role(
    role: str,
    page_params: tuple[int, int] = Depends(get_page_params),
    _: TokenIdentity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    page, limit = page_params
    result = user_service.list_users_by_role(role, page, limit)
    return user_list_body(f"Users with role {role} retrieved successfully", result)
