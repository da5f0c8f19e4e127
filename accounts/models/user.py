"""User model."""

import uuid

from sqlalchemy import Column, Index, String, text

from accounts.database import Base
from accounts.models.mixins import SoftDeleteMixin, TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base, TimestampMixin, SoftDeleteMixin):
    """User account. Rows are soft-deleted, never removed."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash

    __table_args__ = (
        # One live account per email; soft-deleted rows keep their address.
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
