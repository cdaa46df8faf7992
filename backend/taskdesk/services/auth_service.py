"""
Session issuing and password recovery.

Access tokens carry the user's identity claims and expire quickly; refresh
tokens carry only the user id and are used solely to mint new access tokens.
Both are HS256 JWTs with a "type" claim telling them apart.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from taskdesk.core.config import Settings
from taskdesk.core.errors import AuthError, NotFoundError, ValidationError
from taskdesk.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    burn_password_check,
    decode_token,
    encode_token,
    get_password_hash,
    password_context,
    verify_password,
)
from taskdesk.models.user import User
from taskdesk.schemas.auth import MIN_PASSWORD_LENGTH, TokenIdentity
from taskdesk.services.email_service import EmailSender
from taskdesk.services.user_service import normalize_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"
INVALID_TOKEN = "Invalid or expired token"
INVALID_TOKEN_TYPE = "Invalid token type"


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def generate_otp() -> str:
    """Six-digit code, uniform over 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class AuthService:
    def __init__(self, db: Session, settings: Settings, email_sender: EmailSender) -> None:
        self.db = db
        self.settings = settings
        self.email_sender = email_sender
        self.pwd_context = password_context(settings.BCRYPT_ROUNDS)

    # ---- tokens ----

    def issue_access_token(self, user: User) -> str:
        claims = {
            "sub": str(user.id),
            "userId": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "permissions": list(user.permissions or []),
            "firstName": user.first_name,
            "lastName": user.last_name,
            "type": ACCESS_TOKEN_TYPE,
        }
        return encode_token(
            claims,
            self.settings.SECRET_KEY,
            timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            algorithm=self.settings.ALGORITHM,
        )

    def issue_refresh_token(self, user: User) -> str:
        claims = {"sub": str(user.id), "userId": user.id, "type": REFRESH_TOKEN_TYPE}
        return encode_token(
            claims,
            self.settings.get_refresh_secret_key(),
            timedelta(days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=self.settings.ALGORITHM,
        )

    def _decode(self, token: str, secret_key: str, expected_type: str) -> dict[str, Any]:
        payload = decode_token(token, secret_key, algorithm=self.settings.ALGORITHM)
        if payload is None:
            raise AuthError(INVALID_TOKEN)
        # A validly signed token of the other kind must not pass
        if payload.get("type") != expected_type:
            raise AuthError(INVALID_TOKEN_TYPE)
        return payload

    def decode_access_token(self, token: str) -> TokenIdentity:
        payload = self._decode(token, self.settings.SECRET_KEY, ACCESS_TOKEN_TYPE)
        try:
            return TokenIdentity.model_validate(payload)
        except PydanticValidationError as exc:
            raise AuthError(INVALID_TOKEN) from exc

    def get_user_from_token(self, token: str) -> User:
        identity = self.decode_access_token(token)
        user = self.db.query(User).filter(User.id == identity.user_id).first()
        if user is None:
            raise AuthError("User not found")
        return user

    def login(self, username: str, password: str) -> LoginResult:
        user = self.db.query(User).filter(User.username == username).first()
        if user is None:
            # Same cost and same message as a wrong password
            burn_password_check(password, self.pwd_context)
            logger.warning("Login failed for unknown username %r", username)
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(password, user.hashed_password, self.pwd_context):
            logger.warning("Login failed for user %s: bad password", user.id)
            raise AuthError(INVALID_CREDENTIALS)

        return LoginResult(
            user=user,
            access_token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(user),
        )

    def refresh(self, refresh_token: str) -> TokenPair:
        """Mint a new access token; the refresh token itself is returned unchanged."""
        payload = self._decode(refresh_token, self.settings.get_refresh_secret_key(), REFRESH_TOKEN_TYPE)
        user_id = payload.get("userId")
        # Re-read the user so role/permission changes since login show up
        user = self.db.query(User).filter(User.id == user_id).first() if user_id is not None else None
        if user is None:
            raise AuthError("User not found")
        return TokenPair(access_token=self.issue_access_token(user), refresh_token=refresh_token)

    # ---- password recovery ----

    def forgot_password(self, email: str) -> None:
        user = self.db.query(User).filter(User.email == normalize_email(email)).first()
        if user is None:
            raise NotFoundError("No user found with this email address")

        expires_minutes = self.settings.OTP_EXPIRE_MINUTES
        otp = generate_otp()
        user.reset_password_otp = otp
        user.reset_password_otp_expires = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
        self.db.commit()
        logger.info("Password reset OTP issued for user %s", user.id)

        self.email_sender.send_otp_email(
            user.email,
            otp,
            f"{user.first_name} {user.last_name}".strip(),
            expires_minutes,
        )

    def verify_otp(self, email: str, otp: str) -> None:
        """Check the OTP without consuming it; it stays valid until replaced or expired."""
        user = (
            self.db.query(User)
            .filter(
                User.email == normalize_email(email),
                User.reset_password_otp == otp,
                User.reset_password_otp_expires > datetime.now(timezone.utc),
            )
            .first()
        )
        if user is None:
            raise ValidationError("Invalid or expired OTP")

    def update_password(self, email: str, new_password: str) -> None:
        # Does not re-check the OTP: callers are expected to run verify_otp first
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        user = self.db.query(User).filter(User.email == normalize_email(email)).first()
        if user is None:
            raise NotFoundError("User not found")

        user.hashed_password = get_password_hash(new_password, self.pwd_context)
        user.reset_password_otp = None
        user.reset_password_otp_expires = None
        self.db.commit()
        logger.info("Password updated for user %s", user.id)
