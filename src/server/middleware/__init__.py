"""Server middleware."""
from src.server.middleware.rate_limit import RateLimitMiddleware
from src.server.middleware.logging import RequestLoggingMiddleware, sanitize_dict, sanitize_path

__all__ = ["RateLimitMiddleware", "RequestLoggingMiddleware", "sanitize_dict", "sanitize_path"]
