from fastapi import APIRouter, Depends, Query

from taskdesk.api.dependencies import get_user_service, require_admin
from taskdesk.api.routes.users import USER_NOT_FOUND_MESSAGE
from taskdesk.core.errors import NotFoundError
from taskdesk.schemas.auth import TokenIdentity
from taskdesk.schemas.common import ApiResponse, MessageResponse
from taskdesk.schemas.user import AdminUserUpdate, UserRead
from taskdesk.services.user_service import UserService

# Every route here needs an admin access token
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=ApiResponse[UserRead])
async def get_user(
    user_id: int = Query(..., alias="id"),
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.get_user(user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User retrieved successfully", "data": user}


@router.put("/users", response_model=ApiResponse[UserRead])
async def update_user(
    payload: AdminUserUpdate,
    user_id: int = Query(..., alias="id"),
    admin: TokenIdentity = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.update_user(user_id, payload, updated_by=admin.user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User updated successfully", "data": user}


@router.delete("/users", response_model=MessageResponse)
async def delete_user(
    user_id: int = Query(..., alias="id"),
    user_service: UserService = Depends(get_user_service),
):
    if not user_service.delete_user(user_id):
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return {"message": "User deleted successfully"}
