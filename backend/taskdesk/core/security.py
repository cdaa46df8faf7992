from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from taskdesk.core.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@lru_cache(maxsize=None)
def password_context(rounds: int) -> CryptContext:
    """
    CryptContext handles password hashing using bcrypt.

    One context per bcrypt cost, built once; create_app() picks the cost
    from its Settings. 'deprecated="auto"' lets passlib flag hashes made
    with outdated settings.
    """
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


# Used when no context is passed in explicitly
pwd_context = password_context(settings.BCRYPT_ROUNDS)


def _resolve(context: Optional[CryptContext]) -> CryptContext:
    return pwd_context if context is None else context


def verify_password(plain_password: str, hashed_password: str, context: Optional[CryptContext] = None) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return _resolve(context).verify(plain_password, hashed_password)


def get_password_hash(password: str, context: Optional[CryptContext] = None) -> str:
    """Hash a password using bcrypt"""
    return _resolve(context).hash(password)


@lru_cache(maxsize=None)
def _dummy_hash(context: CryptContext) -> str:
    return context.hash("taskdesk-dummy-password")


def burn_password_check(plain_password: str, context: Optional[CryptContext] = None) -> None:
    """Run a throwaway verify so unknown accounts cost the same time as known ones."""
    context = _resolve(context)
    context.verify(plain_password, _dummy_hash(context))


def encode_token(
    data: dict[str, Any],
    secret_key: str,
    expires_delta: timedelta,
    algorithm: str = "HS256",
) -> str:
    """Create a signed JWT that expires after expires_delta"""
    # Copy data so the caller's dict is left untouched
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_token(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[dict[str, Any]]:
    """Decode and verify a JWT token"""
    try:
        # Verify signature and expiration automatically
        # Returns None if token is invalid, expired, or tampered with
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None
