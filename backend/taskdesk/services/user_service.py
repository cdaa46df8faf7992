import logging
from typing import Optional, Union

from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskdesk.core.errors import ConflictError, ValidationError
from taskdesk.core.security import get_password_hash
from taskdesk.models.user import ROLES, User
from taskdesk.schemas.user import AdminUserUpdate, ProfileUpdate, UserCreate
from taskdesk.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page, paginate
from taskdesk.services.validators import is_actor_id, like_pattern

logger = logging.getLogger(__name__)

EMAIL_EXISTS = "Email already exists"
USERNAME_EXISTS = "Username already exists"

USER_ORDERING = (User.created_at.desc(), User.id.desc())


def normalize_email(email: str) -> str:
    return email.strip().lower()


_UNIQUE_COLUMN_MESSAGES = (("email", EMAIL_EXISTS), ("username", USERNAME_EXISTS))


def _conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """
    Name the unique column a duplicate-key failure came from.

    Only the constraint/column name is matched. The driver text also carries
    the rejected value, e.g. a username of "myemail".
    """
    # psycopg2 exposes the violated constraint directly
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    # sqlite: "UNIQUE constraint failed: users.email"
    # postgres: 'duplicate key value violates unique constraint "ix_users_email"'
    #           'DETAIL:  Key (email)=(...) already exists.'
    detail = str(exc.orig).lower()
    for column, message in _UNIQUE_COLUMN_MESSAGES:
        markers = (f'"ix_users_{column}"', f"users.{column}", f"key ({column})=")
        if constraint == f"ix_users_{column}" or any(marker in detail for marker in markers):
            return ConflictError(message)
    return ConflictError("User already exists")


class UserService:
    def __init__(self, db: Session, pwd_context: Optional[CryptContext] = None) -> None:
        self.db = db
        self.pwd_context = pwd_context

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def _check_unique(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> None:
        # Early, friendly check; the unique indexes still decide under concurrency
        if email is not None:
            query = self.db.query(User.id).filter(User.email == email)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError(EMAIL_EXISTS)
        if username is not None:
            query = self.db.query(User.id).filter(User.username == username)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError(USERNAME_EXISTS)

    def _commit_unique(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Two requests can both pass _check_unique; the loser lands here
            self.db.rollback()
            raise _conflict_from_integrity_error(exc) from exc

    def create_user(self, data: UserCreate, created_by: Optional[int] = None) -> User:
        email = normalize_email(data.email)
        self._check_unique(email=email, username=data.username)

        user = User(
            username=data.username,
            email=email,
            hashed_password=get_password_hash(data.password, self.pwd_context),
            first_name=data.first_name,
            last_name=data.last_name or "",
            role=data.role,
            permissions=list(data.permissions),
            created_by=created_by,
            updated_by=created_by,
        )
        self.db.add(user)
        self._commit_unique()
        self.db.refresh(user)
        logger.info("User %s (%s) created", user.id, user.username)
        return user

    def list_users(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        search: Optional[str] = None,
    ) -> Page[User]:
        query = self.db.query(User)
        if search:
            pattern = like_pattern(search)
            query = query.filter(
                or_(
                    User.username.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                    User.role.ilike(pattern, escape="\\"),
                )
            )
        return paginate(query, page, limit, order_by=list(USER_ORDERING))

    def list_users_by_role(
        self,
        role: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[User]:
        if role not in ROLES:
            raise ValidationError(f"Invalid role. Allowed roles: {', '.join(ROLES)}")
        query = self.db.query(User).filter(User.role == role)
        return paginate(query, page, limit, order_by=list(USER_ORDERING))

    def update_user(
        self,
        user_id: int,
        data: Union[ProfileUpdate, AdminUserUpdate],
        updated_by: int,
    ) -> Optional[User]:
        if not is_actor_id(updated_by):
            raise ValidationError("Valid updatedBy user ID is required")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])

        user = self.get_user(user_id)
        if user is None:
            return None

        self._check_unique(
            email=changes.get("email"),
            username=changes.get("username"),
            exclude_id=user_id,
        )

        password = changes.pop("password", None)
        if password is not None:
            user.hashed_password = get_password_hash(password, self.pwd_context)
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_by = updated_by

        self._commit_unique()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int) -> bool:
        user = self.get_user(user_id)
        if user is None:
            return False
        self.db.delete(user)
        self.db.commit()
        logger.info("User %s deleted", user_id)
        return True

    def users_exist(self) -> bool:
        return self.db.query(User.id).first() is not None
