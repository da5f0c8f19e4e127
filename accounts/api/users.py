"""User API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from accounts.api.dependencies import get_user_service
from accounts.common.envelope import EnvelopeRoute
from accounts.schemas.user import UserCreate, UserResponse, UserUpdate
from accounts.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"], route_class=EnvelopeRoute)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Register a new user."""
    return service.create(user_data)


@router.get("", response_model=list[UserResponse])
async def get_users(
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Get all users that have not been deleted."""
    return service.find_all()


@router.get("/lookup", response_model=UserResponse | None)
async def lookup_user(
    email: Annotated[str, Query(max_length=255)],
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Find a user by email. Returns null when there is none."""
    return service.find_by_email(email)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Get a specific user."""
    return service.find_by_id(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Update the given fields of a user."""
    return service.update(user_id, user_data)


@router.delete("/{user_id}", response_model=None)
async def delete_user(
    user_id: str,
    service: Annotated[UserService, Depends(get_user_service)],
):
    """Soft delete a user."""
    service.remove(user_id)
