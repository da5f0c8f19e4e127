"""Success envelope for API responses.

Every successful JSON response is rewritten as::

    {"success": true, "data": <original body>, "timestamp": "<iso>"}

Routers opt in with ``route_class=EnvelopeRoute`` (the app router uses it by
default). A whole router opts out with ``route_class=RawRoute``; a single
endpoint opts out with ``@skip_envelope`` and back in with
``@skip_envelope(skip=False)``. The endpoint marker wins over the router.
"""

import json
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

SKIP_ENVELOPE_ATTR = "__skip_envelope__"

_REPLACED_HEADERS = (b"content-length", b"content-type")


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def skip_envelope(endpoint: Callable | None = None, *, skip: bool = True):
    """Mark an endpoint so its response is (or is not) left unwrapped."""

    def mark(func: Callable) -> Callable:
        setattr(func, SKIP_ENVELOPE_ATTR, skip)
        return func

    if endpoint is None:
        return mark
    return mark(endpoint)


def is_envelope_skipped(endpoint: Callable, default: bool = False) -> bool:
    """Resolve the opt-out marker, falling back to the router default."""
    flag = getattr(endpoint, SKIP_ENVELOPE_ATTR, None)
    return default if flag is None else flag


def wrap_response(response: Response) -> Response:
    """Wrap a successful JSON response body in the success envelope."""
    # response_model routes may come back as a plain Response, so go by content type.
    content_type = response.headers.get("content-type", "")
    if not content_type.startswith("application/json"):
        return response
    body = getattr(response, "body", b"")
    if not 200 <= response.status_code < 300 or not body:
        return response

    wrapped = JSONResponse(
        content={
            "success": True,
            "data": json.loads(body),
            "timestamp": utc_timestamp(),
        },
        status_code=response.status_code,
        background=response.background,
    )
    wrapped.raw_headers.extend(
        (key, value) for key, value in response.raw_headers if key not in _REPLACED_HEADERS
    )
    return wrapped


class EnvelopeRoute(APIRoute):
    """APIRoute that wraps successful responses unless opted out."""

    skip_envelope_default = False

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def envelope_route_handler(request: Request) -> Response:
            response = await original_route_handler(request)
            if is_envelope_skipped(self.endpoint, self.skip_envelope_default):
                return response
            return wrap_response(response)

        return envelope_route_handler


class RawRoute(EnvelopeRoute):
    """Route class for routers whose responses are returned as-is."""

    skip_envelope_default = True
