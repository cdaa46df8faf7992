from typing import List, Optional

from pydantic import EmailStr, Field

from taskdesk.schemas.common import CamelModel
from taskdesk.schemas.user import MIN_PASSWORD_LENGTH, UserRead


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class VerifyOTPRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16)


class UpdatePasswordRequest(CamelModel):
    email: EmailStr
    new_password: str = Field(..., min_length=1, max_length=128)


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginData(TokenPair):
    user: UserRead


class TokenIdentity(CamelModel):
    """Claims carried by an access token, attached to the request once verified."""

    user_id: int
    username: str
    email: str
    role: str
    permissions: List[str] = []
    first_name: str = ""
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


__all__ = [
    "ForgotPasswordRequest",
    "LoginData",
    "LoginRequest",
    "MIN_PASSWORD_LENGTH",
    "RefreshTokenRequest",
    "TokenIdentity",
    "TokenPair",
    "UpdatePasswordRequest",
    "VerifyOTPRequest",
]
