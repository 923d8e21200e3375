"""
Request context middleware for FastAPI.

Provides:
- Correlation ID extraction (or generation) for every request
- Author id extraction from a configurable request header
- Binding of both values into the structlog context for the request
"""

import uuid
import structlog
from typing import Callable, Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from shared.logging import bind_context, unbind_context

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# post.user_id is a 32-bit integer column
MAX_USER_ID = 2**31 - 1


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enriches the request state with caller context.

    Sets ``request.state.correlation_id`` and ``request.state.author_id``.
    The author id is None when the header is absent, not an ASCII positive
    integer, or beyond the range of a user id.
    """

    def __init__(self, app, author_header: str = "X-Author-Id"):
        """
        Initialize request context middleware.

        Args:
            app: FastAPI application
            author_header: Header carrying the id of the acting user
        """
        super().__init__(app)
        self.author_header = author_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and attach context.

        Args:
            request: HTTP request
            call_next: Next middleware in chain

        Returns:
            HTTP response
        """
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        author_id = self._extract_author_id(request)

        request.state.correlation_id = correlation_id
        request.state.author_id = author_id

        bind_context(correlation_id=correlation_id, author_id=author_id)
        try:
            response = await call_next(request)
        finally:
            unbind_context("correlation_id", "author_id")

        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    def _extract_author_id(self, request: Request) -> Optional[int]:
        """
        Extract the author id header.

        Args:
            request: HTTP request

        Returns:
            Author id or None if missing or malformed
        """
        raw = request.headers.get(self.author_header)

        if raw is None:
            return None

        raw = raw.strip()
        if not (raw.isascii() and raw.isdigit()) or not 0 < int(raw) <= MAX_USER_ID:
            logger.warning("author_header_malformed", header=self.author_header, value=raw)
            return None

        return int(raw)
