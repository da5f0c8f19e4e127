"""Domain errors raised by services.

They subclass FastAPI's HTTPException so that routing, OpenAPI and the
global exception handlers all treat them as ordinary HTTP errors.
"""

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    def __init__(self, detail: str | list[str] = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
