"""Error messages and database error codes."""


class ErrorMessage:
    """User-facing error messages."""

    INTERNAL_SERVER_ERROR = "Internal server error"
    VALIDATION_FAILED = "Validation failed"
    BAD_REQUEST = "Bad request"
    GENERIC_ERROR = "Error"

    # Database errors mapped to client errors
    RESOURCE_ALREADY_EXISTS = "Resource already exists"
    RELATED_RESOURCE_NOT_FOUND = "Related resource not found"
    RESOURCE_NOT_FOUND = "Resource not found"

    # Domain
    EMAIL_ALREADY_EXISTS = "Email already exists"
    USER_NOT_FOUND = "User was not found"


class DBErrorCode:
    """SQLSTATE codes recognised by the exception handlers."""

    UNIQUE_CONSTRAINT = "23505"
    FOREIGN_KEY_CONSTRAINT = "23503"
    # No SQLSTATE exists for this one; raised as sqlalchemy.exc.NoResultFound.
    RECORD_NOT_FOUND = "NO_RESULT"
