"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from accounts.database import get_db
from accounts.services.user_service import UserService


def get_user_service(
    db: Annotated[Session, Depends(get_db)],
) -> UserService:
    """Get user service bound to the request's session."""
    return UserService(db)
