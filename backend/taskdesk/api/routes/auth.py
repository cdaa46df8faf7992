from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from taskdesk.api.dependencies import bearer_scheme, get_auth_service, get_current_identity
from taskdesk.core.errors import AuthError
from taskdesk.schemas.auth import (
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    RefreshTokenRequest,
    TokenIdentity,
    TokenPair,
    UpdatePasswordRequest,
    VerifyOTPRequest,
)
from taskdesk.schemas.common import ApiResponse, MessageResponse
from taskdesk.schemas.user import UserRead
from taskdesk.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange username/password for an access + refresh token pair"""
    result = auth_service.login(payload.username, payload.password)
    return {
        "message": "Login successful",
        "data": {
            "user": result.user,
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
        },
    }


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
async def refresh_token(payload: RefreshTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Mint a new access token from a refresh token"""
    pair = auth_service.refresh(payload.refresh_token)
    return {
        "message": "Token refreshed successfully",
        "data": {"access_token": pair.access_token, "refresh_token": pair.refresh_token},
    }


# Plain def: SMTP delivery blocks, so FastAPI runs this in its threadpool
@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: ForgotPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.forgot_password(payload.email)
    return {"message": "Password reset OTP sent to your email"}


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(payload: VerifyOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.verify_otp(payload.email, payload.otp)
    return {"message": "OTP verified successfully"}


@router.post("/update-password", response_model=MessageResponse)
async def update_password(payload: UpdatePasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.update_password(payload.email, payload.new_password)
    return {"message": "Password updated successfully"}


@router.get("/verify-token", response_model=ApiResponse[TokenIdentity])
async def verify_token(identity: TokenIdentity = Depends(get_current_identity)):
    """Return the identity decoded from a valid bearer token"""
    return {"message": "Token is valid", "data": identity}


@router.get("/me", response_model=ApiResponse[UserRead])
async def get_current_user_info(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get the stored user record behind the bearer token"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Authorization token required")
    user = auth_service.get_user_from_token(credentials.credentials)
    return {"message": "User information retrieved successfully", "data": user}
