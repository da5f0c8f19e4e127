"""Global exception handlers.

Every error leaving the application is rendered as the same JSON shape::

    {"success": false, "statusCode": 409, "message": "...",
     "errors": null, "timestamp": "...", "path": "/api/v1/users"}

Sources, in order of precedence:

1. HTTP errors (FastAPI/Starlette ``HTTPException`` and the domain errors in
   ``accounts.common.exceptions``). A 400 whose detail is a list of messages
   is treated as a validation failure.
2. Request validation errors raised by FastAPI while parsing input.
3. Database errors with a known code (unique / foreign key / no result).
4. Other SQLAlchemy errors, which mean a query was built wrongly.
5. Anything else.

Only 1-3 expose a specific message; the rest are logged and reported as a
generic 500.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.common.constants import DBErrorCode, ErrorMessage
from accounts.common.envelope import utc_timestamp

logger = logging.getLogger(__name__)

# SQLite reports constraint failures only through the message text.
_SQLITE_ERROR_FRAGMENTS = {
    "UNIQUE constraint failed": DBErrorCode.UNIQUE_CONSTRAINT,
    "FOREIGN KEY constraint failed": DBErrorCode.FOREIGN_KEY_CONSTRAINT,
}

_DB_ERROR_RESPONSES = {
    DBErrorCode.UNIQUE_CONSTRAINT: (status.HTTP_409_CONFLICT, ErrorMessage.RESOURCE_ALREADY_EXISTS),
    DBErrorCode.FOREIGN_KEY_CONSTRAINT: (
        status.HTTP_400_BAD_REQUEST,
        ErrorMessage.RELATED_RESOURCE_NOT_FOUND,
    ),
    DBErrorCode.RECORD_NOT_FOUND: (status.HTTP_404_NOT_FOUND, ErrorMessage.RESOURCE_NOT_FOUND),
}


def format_validation_errors(messages: list[str]) -> dict[str, list[str]]:
    """Group validation messages by field.

    The field is the first space-delimited word of each message, e.g.
    ``"email must be an email"`` lands under ``"email"``. Messages that do
    not start with the field name are grouped under whatever word they do
    start with.
    """
    errors: dict[str, list[str]] = {}
    for message in messages:
        field = message.split(" ")[0]
        errors.setdefault(field, []).append(message)
    return errors


def validation_messages(exc: RequestValidationError) -> list[str]:
    """Render pydantic errors as ``"<field> <message>"`` strings."""
    messages = []
    for error in exc.errors():
        location = [part for part in error.get("loc", ()) if isinstance(part, str)]
        field = location[-1] if location else "body"
        messages.append(f"{field} {error.get('msg', 'is invalid')}")
    return messages


def db_error_code(exc: SQLAlchemyError) -> str | None:
    """Extract a database error code from a SQLAlchemy exception."""
    if isinstance(exc, NoResultFound):
        return DBErrorCode.RECORD_NOT_FOUND

    orig = getattr(exc, "orig", None)
    if orig is None:
        return None

    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code

    text = str(orig)
    for fragment, fragment_code in _SQLITE_ERROR_FRAGMENTS.items():
        if fragment in text:
            return fragment_code
    return None


def _request_path(request: Request) -> str:
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


def error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: dict[str, list[str]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "statusCode": status_code,
            "message": message,
            "errors": errors,
            "timestamp": utc_timestamp(),
            "path": _request_path(request),
        },
        headers=headers,
    )


def _http_error_message(status_code: int, detail: Any) -> tuple[str, dict[str, list[str]] | None]:
    if status_code == status.HTTP_400_BAD_REQUEST:
        if isinstance(detail, dict) and "message" in detail:
            detail = detail["message"]
        if isinstance(detail, list):
            return ErrorMessage.VALIDATION_FAILED, format_validation_errors(
                [str(message) for message in detail]
            )
        if isinstance(detail, str):
            return detail, None
        return ErrorMessage.BAD_REQUEST, None

    if isinstance(detail, str):
        return detail, None
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"]), None
    return ErrorMessage.GENERIC_ERROR, None


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Translate HTTPException and its subclasses."""
    message, errors = _http_error_message(exc.status_code, exc.detail)
    return error_response(
        request,
        exc.status_code,
        message,
        errors=errors,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Translate request validation failures into a grouped 400."""
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ErrorMessage.VALIDATION_FAILED,
        errors=format_validation_errors(validation_messages(exc)),
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Translate database errors.

    Known constraint codes become client errors; everything else is a 500.
    """
    if isinstance(exc, (DBAPIError, NoResultFound)):
        mapped = _DB_ERROR_RESPONSES.get(db_error_code(exc))
        if mapped is not None:
            status_code, message = mapped
            return error_response(request, status_code, message)
        logger.error("Unhandled database error: %s", exc, exc_info=exc)
    else:
        logger.error("Database query error (bug in code): %s", exc)

    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessage.INTERNAL_SERVER_ERROR
    )


async def catch_unhandled_exceptions(request: Request, call_next):
    """Middleware turning any exception the handlers above missed into a 500."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessage.INTERNAL_SERVER_ERROR
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope on an application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.middleware("http")(catch_unhandled_exceptions)
