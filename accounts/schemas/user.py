"""User schemas."""

from datetime import datetime
from typing import Annotated

from email_validator import validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


def _check_email(value: str) -> str:
    # Syntax check only; the address is stored exactly as submitted.
    validate_email(value, check_deliverability=False)
    return value


Email = Annotated[str, StringConstraints(max_length=255), AfterValidator(_check_email)]


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(CamelModel):
    """User registration request."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: Email
    password: str = Field(..., min_length=8)


class UserUpdate(CamelModel):
    """Partial user update. Omitted fields are left untouched."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    email: Email | None = None
    password: str | None = Field(None, min_length=8)


class UserResponse(CamelModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime
    updated_at: datetime
