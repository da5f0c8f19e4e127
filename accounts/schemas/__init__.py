"""Pydantic schemas for API requests and responses."""

from accounts.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "UserCreate",
    "UserUpdate",
    "UserResponse",
]
