"""
FastAPI application entry point with health endpoints and service routing.

This module provides the FastAPI application instance with CORS
configuration, request correlation, rate limiting, health and readiness
endpoints and the storefront routers.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from flowershop.api.v1 import cart_router, orders_router
from flowershop.cache.redis_client import close_redis_client, get_redis_client
from flowershop.core.config import get_settings
from flowershop.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from flowershop.core.rate_limit import limiter
from flowershop.core.security import get_security_headers
from flowershop.database.connection import check_database_health, close_database_connections

# Configure logging before application initialization
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    settings = get_settings()

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
        checkout_store_backend=settings.checkout_store_backend,
        cart_backend=settings.cart_backend,
    )

    yield

    logger.info("Application shutting down")
    with log_performance(logger, "application_shutdown"):
        await close_redis_client()
        await close_database_connections()


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Flower shop storefront backend API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Location"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Add security headers to every response."""
    response = await call_next(request)
    for header, value in get_security_headers().items():
        response.headers[header] = value
    return response


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Sets request ID for correlation, logs request details, and measures
    response time. Clears context after request processing.

    Args:
        request: Incoming HTTP request
        call_next: Next middleware or route handler

    Returns:
        HTTP response with X-Request-ID header
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response
    except Exception as e:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        clear_context()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with the shared error body.

    Returns:
        400 response listing the offending fields
    """
    fields = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        fields=[field["field"] for field in fields],
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "fields": fields,
            "request_id": get_request_id(),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic error response.

    Returns:
        500 response that does not expose internal details
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "request_id": get_request_id(),
        },
    )


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness check; always 200 while the process is running."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/ready", status_code=status.HTTP_200_OK, tags=["Health"])
async def readiness_check():
    """
    Readiness check.

    Verifies the database and, when carts live in Redis, the Redis
    connection. Returns 503 when any dependency is unavailable.
    """
    database_ok = await check_database_health(max_retries=1)

    cart_ok = True
    if settings.cart_backend == "redis":
        try:
            client = await get_redis_client()
            cart_ok = await client.health_check()
        except Exception as e:
            logger.warning(
                "Cart store connectivity check failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            cart_ok = False

    ready = database_ok and cart_ok
    content = {
        "status": "ready" if ready else "not_ready",
        "service": settings.app_name,
        "database": "healthy" if database_ok else "unhealthy",
        "cart_store": "healthy" if cart_ok else "unhealthy",
    }
    if not ready:
        logger.warning("Readiness check failed", **content)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=content)
    return content


app.include_router(orders_router, prefix=settings.api_v1_prefix)
app.include_router(cart_router, prefix=settings.api_v1_prefix)
