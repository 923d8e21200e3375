"""
FastAPI dependency injection for database access and request context.

Provides injectable dependencies for:
- Database connection pool lifecycle (asyncpg)
- The data accessor and repository instances
- The author of a new post, taken from the request context
- The create-post body (form or JSON)
- The redirect target derived from the Referer header

All dependencies use FastAPI's dependency injection system so that tests
can replace them through ``app.dependency_overrides``.
"""

import asyncpg
import structlog
from typing import Any, Dict, Optional
from urllib.parse import urlsplit
from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from blog.src.config import get_settings, Settings
from blog.src.database import Database
from blog.src.models.blog import CreatePostRequest
from blog.src.repositories.user_repo import UserRepository
from blog.src.repositories.post_repo import PostRepository
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool(settings: Optional[Settings] = None) -> asyncpg.Pool:
    """
    Initialize database connection pool.

    Should be called during application startup.

    Args:
        settings: Settings to read connection parameters from

    Returns:
        asyncpg connection pool
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = settings or get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.dsn,
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            command_timeout=settings.database_command_timeout
        )

        logger.info(
            "database_pool_initialized",
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            database=settings.dsn.split("@")[-1]
        )

        return _pool

    except Exception as e:
        logger.error("database_pool_init_failed", error=str(e))
        raise


async def close_db_pool():
    """
    Close database connection pool.

    Should be called during application shutdown.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        logger.info("database_pool_closed")
        _pool = None


def get_db_pool() -> asyncpg.Pool:
    """
    Get database connection pool.

    Returns:
        asyncpg connection pool

    Raises:
        RuntimeError: If pool is not initialized
    """
    if _pool is None:
        logger.error("database_pool_not_initialized")
        raise RuntimeError(
            "Database pool not initialized. Call init_db_pool() during startup."
        )
    return _pool


# ============================================================================
# DATA ACCESS DEPENDENCIES
# ============================================================================


def get_database() -> Database:
    """
    Get the data accessor bound to the application pool.

    Returns:
        Database wrapper around the pool
    """
    _, database_metrics = setup_metrics()
    return Database(get_db_pool(), metrics=database_metrics)


def get_user_repository(db: Database = Depends(get_database)) -> UserRepository:
    """
    Get user repository.

    Example:
        @router.get("/users")
        async def list_users(repo: UserRepository = Depends(get_user_repository)):
            return await repo.list_users()
    """
    return UserRepository(db)


def get_post_repository(db: Database = Depends(get_database)) -> PostRepository:
    """Get post repository."""
    return PostRepository(db)


# ============================================================================
# REQUEST CONTEXT DEPENDENCIES
# ============================================================================


def get_settings_dependency() -> Settings:
    """
    Get application settings.

    Returns:
        Settings instance
    """
    return get_settings()


async def get_author_id(
    request: Request,
    settings: Settings = Depends(get_settings_dependency)
) -> int:
    """
    Get the id of the user creating a post.

    Uses the author placed on the request state by
    ``RequestContextMiddleware`` and falls back to the configured default.

    Args:
        request: HTTP request
        settings: Application settings

    Returns:
        Owning user id for new posts
    """
    author_id = getattr(request.state, "author_id", None)
    if author_id is None:
        return settings.default_author_id
    return author_id


async def get_create_post_request(request: Request) -> CreatePostRequest:
    """
    Parse the create-post body from a form submission or a JSON document.

    Args:
        request: HTTP request

    Returns:
        Validated create-post request

    Raises:
        RequestValidationError: If the body is malformed or misses a field
    """
    content_type = request.headers.get("Content-Type", "")

    payload: Dict[str, Any]
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": None}]
            )
        if not isinstance(payload, dict):
            raise RequestValidationError(
                [{"type": "model_attributes_type", "loc": ("body",), "msg": "Input should be an object", "input": None}]
            )
    else:
        form = await request.form()
        payload = {key: form.get(key) for key in form.keys()}

    try:
        return CreatePostRequest.model_validate(payload)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        for error in errors:
            error["loc"] = ("body", *error["loc"])
            error.pop("ctx", None)
        raise RequestValidationError(errors)


def referrer_origin(referrer: Optional[str]) -> Optional[str]:
    """
    Get the origin (scheme, host and non-default port) of a referrer URL.

    Args:
        referrer: Value of the Referer header

    Returns:
        Origin such as ``https://example.com``, or None if the URL is not
        http or https or has no host
    """
    if not referrer:
        return None

    try:
        parts = urlsplit(referrer.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"

    if port is not None and port != DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


async def get_redirect_target(
    request: Request,
    settings: Settings = Depends(get_settings_dependency)
) -> str:
    """
    Get where to send the browser after a post is created.

    Args:
        request: HTTP request
        settings: Application settings

    Returns:
        Origin of the submitting page, or the configured fallback
    """
    referrer = request.headers.get("Referer") or request.headers.get("Referrer")
    origin = referrer_origin(referrer)

    if origin is None:
        logger.debug("redirect_referrer_unusable", referrer=referrer)
        return settings.redirect_fallback_url

    return origin
