"""
FastAPI application entry point for the Blog API.

This module provides the main FastAPI application with:
- User and post endpoints
- Health and readiness endpoints
- Request/response logging with correlation IDs
- Prometheus metrics
- CORS for the browser renderer
- Database connection pool management
- Graceful startup and shutdown
"""

import time
import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog.src.config import get_settings, Settings
from blog.src.database import Database
from blog.src.dependencies import init_db_pool, close_db_pool, get_database
from blog.src.middleware import RequestContextMiddleware
from blog.src.routers.blog import users_router, posts_router
from shared.logging import configure_logging
from shared.metrics import setup_metrics, get_metrics_handler

logger = structlog.get_logger(__name__)

settings: Settings = get_settings()

http_metrics, database_metrics = setup_metrics()

# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Logging configuration
    - Database connection pool initialization
    - Graceful shutdown and resource cleanup
    """
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment,
    )

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        pool = await init_db_pool(settings)

        async with pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            logger.info("database_connected", postgres_version=version)

        database_metrics.connections_active.set(pool.get_size())
        database_metrics.connections_idle.set(pool.get_idle_size())

        logger.info("application_started", app_name=settings.app_name)

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        await close_db_pool()
        logger.info("application_shutdown_complete")

# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Example blog API: list users and posts, fetch a post, create a post.",
    lifespan=lifespan,
    debug=settings.debug,
)

# ============================================================================
# Middleware Configuration
# ============================================================================

def endpoint_label(request: Request) -> str:
    """Route template matching the request, such as ``/posts/{post_id}``."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            return route.path
    return "unmatched"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and metrics."""

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        method = request.method
        path = request.url.path
        endpoint = endpoint_label(request)
        client_ip = request.client.host if request.client else "unknown"

        http_metrics.requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()

        logger.info("request_started", method=method, path=path, client_ip=client_ip)

        try:
            response = await call_next(request)

            duration = time.time() - start_time

            http_metrics.requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            http_metrics.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            http_metrics.requests_in_progress.labels(method=method, endpoint=endpoint).dec()


# Last added runs first: request context wraps request logging
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestContextMiddleware, author_header=settings.author_header)

if settings.cors_enabled:
    logger.info("configuring_cors", origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=str(exc.errors())
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors()})
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions, including database errors."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# Health and Readiness Endpoints
# ============================================================================

@app.get("/health", tags=["Health"], response_class=JSONResponse)
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }

@app.get("/ready", tags=["Health"], response_class=JSONResponse)
async def readiness_check(db: Database = Depends(get_database)) -> JSONResponse:
    """
    Readiness check endpoint.

    Verifies that a database connection can be acquired and used.
    """
    checks = {"database": "unknown"}

    try:
        checks["database"] = "healthy" if await db.ping() else "unhealthy"
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        checks["database"] = "unhealthy"

    all_healthy = all(check == "healthy" for check in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_healthy else "not_ready",
            "service": settings.app_name,
            "version": settings.app_version,
            "checks": checks
        }
    )

# ============================================================================
# Metrics Endpoint
# ============================================================================

metrics_handler = get_metrics_handler()

@app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return Response(
        content=metrics_handler(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )

# ============================================================================
# API Router Registration
# ============================================================================

app.include_router(users_router)
app.include_router(posts_router)

# ============================================================================
# Application Entry Point
# ============================================================================

def run():
    """Run the application with Uvicorn."""
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "blog.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
