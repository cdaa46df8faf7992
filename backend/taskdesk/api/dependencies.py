from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskdesk.core.config import Settings
from taskdesk.core.database import get_db
from taskdesk.core.errors import AuthError, PermissionDeniedError
from taskdesk.core.security import password_context
from taskdesk.schemas.auth import TokenIdentity
from taskdesk.services.auth_service import AuthService
from taskdesk.services.email_service import EmailSender
from taskdesk.services.pagination import parse_page_params
from taskdesk.services.task_service import TaskService
from taskdesk.services.user_service import UserService

# Extracts "Authorization: Bearer <token>"; returns None instead of raising
# so the 401 goes through our envelope
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, settings, email_sender)


def get_user_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, password_context(settings.BCRYPT_ROUNDS))


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenIdentity:
    """
    Require a valid access token.

    Missing or non-Bearer header, bad signature, expiry and refresh tokens all
    end in 401 before the route body runs. The decoded identity is also left
    on request.state.user.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Authorization token required")

    identity = auth_service.decode_access_token(credentials.credentials)
    request.state.user = identity
    return identity


async def get_optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[TokenIdentity]:
    """Like get_current_identity, but anonymous requests (or bad tokens) pass with None."""
    request.state.user = None
    if credentials is None or not credentials.credentials:
        return None
    try:
        identity = auth_service.decode_access_token(credentials.credentials)
    except AuthError:
        return None
    request.state.user = identity
    return identity


async def require_admin(identity: TokenIdentity = Depends(get_current_identity)) -> TokenIdentity:
    if not identity.is_admin:
        raise PermissionDeniedError("Admin access required")
    return identity


async def get_page_params(page: Optional[str] = None, limit: Optional[str] = None) -> tuple[int, int]:
    """page/limit from the query string; bad or missing values fall back to 1/10."""
    return parse_page_params(page, limit)
