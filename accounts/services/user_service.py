"""User account service."""

import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accounts.common.constants import ErrorMessage
from accounts.common.exceptions import ConflictError, NotFoundError
from accounts.models.user import User
from accounts.schemas.user import UserCreate, UserUpdate
from accounts.services.passwords import get_password_hash

logger = logging.getLogger(__name__)


class UserService:
    """CRUD over live (non-deleted) user accounts."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def _get_active_or_404(self, user_id: str) -> User:
        user = self._active().filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(ErrorMessage.USER_NOT_FOUND)
        return user

    def _commit(self) -> None:
        # Leave the session usable for the caller after a failed write;
        # the original error still propagates to the exception handlers.
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def create(self, data: UserCreate) -> User:
        """Register a new user.

        Raises ConflictError if a live account already uses the email. The
        returned row carries the password hash; callers serialize it through
        UserResponse, which leaves it out.
        """
        if self.find_by_email(data.email):
            raise ConflictError(ErrorMessage.EMAIL_ALREADY_EXISTS)

        user = User(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password=get_password_hash(data.password),
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)

        logger.info("Created user %s", user.id)
        return user

    def find_by_id(self, user_id: str) -> User:
        """Get a live user by id or raise NotFoundError."""
        return self._get_active_or_404(user_id)

    def find_by_email(self, email: str) -> User | None:
        """Get a live user by email, or None."""
        return self._active().filter(User.email == email).first()

    def find_all(self) -> Sequence[User]:
        """Get every live user."""
        return self._active().all()

    def update(self, user_id: str, data: UserUpdate) -> User:
        """Apply the fields present in the patch to a live user."""
        user = self._get_active_or_404(user_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("password") is not None:
            changes["password"] = get_password_hash(changes["password"])

        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)

        self._commit()
        self.db.refresh(user)

        logger.info("Updated user %s (%s)", user.id, ", ".join(sorted(changes)) or "no changes")
        return user

    def remove(self, user_id: str) -> None:
        """Soft delete a live user."""
        user = self._get_active_or_404(user_id)
        user.soft_delete()
        self._commit()

        logger.info("Soft-deleted user %s", user_id)
