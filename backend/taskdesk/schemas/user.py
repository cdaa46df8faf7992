from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, EmailStr, Field, field_validator, model_validator

from taskdesk.models.user import PERMISSIONS, ROLES
from taskdesk.schemas.common import CamelModel

MIN_PASSWORD_LENGTH = 6


def _normalize_role(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    role = value.strip().lower()
    if role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
    return role


def _check_permissions(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    invalid = [p for p in value if p not in PERMISSIONS]
    if invalid:
        raise ValueError(f"Invalid permission. Allowed permissions: {', '.join(PERMISSIONS)}")
    # Keep first occurrence order, drop duplicates
    return list(dict.fromkeys(value))


Role = Annotated[str, AfterValidator(_normalize_role)]
PermissionList = Annotated[List[str], AfterValidator(_check_permissions)]


class UserCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    # Signup form sends a single "name"; split into first/last when those are absent
    name: Optional[str] = Field(default=None, max_length=200)
    role: Role = "user"
    permissions: PermissionList = Field(default_factory=lambda: ["Read"])

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters long")
        return value

    @model_validator(mode="after")
    def _fill_names(self):
        if not self.first_name and self.name:
            first, _, last = self.name.strip().partition(" ")
            self.first_name = first
            self.last_name = self.last_name or last.strip()
        if not self.first_name or not self.first_name.strip():
            raise ValueError("First name is required")
        self.first_name = self.first_name.strip()
        self.last_name = (self.last_name or "").strip()
        return self


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own account."""

    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH, max_length=128)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class AdminUserUpdate(ProfileUpdate):
    role: Optional[Role] = None
    permissions: Optional[PermissionList] = None


class UserRead(CamelModel):
    """Public view of a user. Never carries the password hash or OTP."""

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: str
    permissions: List[str]
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
