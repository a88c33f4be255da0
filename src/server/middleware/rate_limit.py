"""Per-client rate limiting middleware."""
import time
from collections import defaultdict, deque
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.server.errors import RateLimitedError
from src.server.models.responses import ErrorDetail, ErrorResponse

WINDOW_SECONDS = 60
EXEMPT_PATHS = frozenset({"/api/health"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute window per client IP; health checks are exempt."""

    def __init__(self, app: ASGIApp, requests_per_minute: int = 120) -> None:
        super().__init__(app)
        self._requests_per_minute = requests_per_minute
        self._request_times: dict[str, deque[float]] = defaultdict(deque)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = self._request_times[client_ip]
        while window and window[0] <= now - WINDOW_SECONDS:
            window.popleft()

        if len(window) >= self._requests_per_minute:
            return _limited_response(int(window[0] + WINDOW_SECONDS))

        window.append(now)
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(self._requests_per_minute - len(window))
        return response


def _limited_response(reset_time: int) -> JSONResponse:
    exc = RateLimitedError(reset_time=reset_time)
    body = ErrorResponse(error=ErrorDetail(code=exc.error_code, message=exc.message, details=exc.details))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers={"Retry-After": str(reset_time)},
    )
