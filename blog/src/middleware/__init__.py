"""FastAPI middleware components.

This package contains custom middleware for request processing.
"""

from blog.src.middleware.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
]
