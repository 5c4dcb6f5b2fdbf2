"""API package."""

from fulfillment.api.middleware import LoggingMiddleware, RateLimitMiddleware
from fulfillment.api.routes import router

__all__ = [
    "router",
    "LoggingMiddleware",
    "RateLimitMiddleware",
]
