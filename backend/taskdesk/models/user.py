from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from taskdesk.core.database import Base

ROLES = ("admin", "user")
PERMISSIONS = ("Read", "Write", "Admin")


class User(Base):
    """
    User model representing application users.

    Stores authentication credentials, profile, role/permissions and the
    transient password-reset OTP. Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Unique indexes are the real guard against duplicate signups racing each other
    username = Column(String(64), unique=True, index=True, nullable=False)
    # Stored lowercased so lookups are case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(16), nullable=False, default="user", index=True)
    permissions = Column(JSON, nullable=False, default=lambda: ["Read"])
    # Actor ids for audit - not foreign keys
    created_by = Column(Integer, nullable=True, index=True)
    updated_by = Column(Integer, nullable=True, index=True)
    # Set by forgot-password, cleared by update-password
    reset_password_otp = Column(String(6), nullable=True)
    reset_password_otp_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
