"""Request logging middleware."""
import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.state.tokens import mask_token

logger = logging.getLogger("consent.server")
SENSITIVE_FIELDS = frozenset({"authorization", "link_token", "proximity_token", "token", "x-api-key"})
# Path segments that follow these carry capability tokens.
_TOKEN_PARENTS = frozenset({"link", "session"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs incoming requests with capability tokens masked."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        start_time = time.perf_counter()
        path = sanitize_path(request.url.path)
        authenticated = "yes" if request.headers.get("authorization") else "no"
        if request.query_params:
            logger.info(
                "Request: %s %s auth=%s query=%s",
                request.method, path, authenticated, sanitize_dict(dict(request.query_params)),
            )
        else:
            logger.info("Request: %s %s auth=%s", request.method, path, authenticated)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Response: %s %s status=%d duration=%.2fms", request.method, path, response.status_code, duration_ms)
        return response


def sanitize_path(path: str) -> str:
    """Mask capability tokens embedded in a request path.

    ``/api/messages/link/<token>`` and ``/api/proximity/session/<token>/...``
    carry tokens after a known segment; ``/api/messages/<token>/respond``
    carries one before ``respond``.
    """
    segments = path.split("/")
    for i, segment in enumerate(segments):
        if not segment:
            continue
        previous = segments[i - 1] if i > 0 else ""
        following = segments[i + 1] if i + 1 < len(segments) else ""
        if previous in _TOKEN_PARENTS or following == "respond":
            segments[i] = mask_token(segment)
    return "/".join(segments)


def sanitize_dict(data: dict) -> dict:
    """Remove sensitive fields from a dictionary for logging."""
    result = {}
    for key, value in data.items():
        lower_key = key.lower()
        if lower_key in SENSITIVE_FIELDS:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = sanitize_dict(value)
        else:
            result[key] = value
    return result
