"""Catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.api.middleware import setup_middleware
from app.api.products import router as products_router
from app.api.uploads import router as uploads_router
from app.application.admin_session import AdminSessionManager
from app.application.listing_cache import ListingCache
from app.domain.exceptions import (
    AuthenticationError,
    CatalogError,
    DuplicateProductIdError,
    InfrastructureError,
    InfrastructureTimeoutError,
    NotFoundError,
    ValidationError,
)
from app.images.manager import ImageManager
from app.infrastructure.config import settings
from app.infrastructure.database import Database
from app.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging(settings.log_level, json=settings.log_json)

    for problem in settings.validate_runtime():
        logger.warning("Configuration problem", problem=problem)
    if not settings.admin_password:
        raise RuntimeError("ADMIN_PASSWORD must be set")

    logger.info(
        "Starting Catalog API",
        version=settings.api_version,
        debug=settings.debug,
        image_backend=settings.image_storage_backend,
    )

    db = Database(
        settings.database_url,
        echo=settings.debug,
        connect_attempts=settings.db_connect_attempts,
        backoff_seconds=settings.db_connect_backoff_seconds,
        backoff_max_seconds=settings.db_connect_backoff_max_seconds,
    )
    await db.connect()
    await db.create_schema()

    if settings.image_storage_backend == "local":
        Path(settings.image_storage_dir).mkdir(parents=True, exist_ok=True)

    app.state.db = db
    app.state.images = ImageManager.from_settings(settings)
    app.state.listing_cache = ListingCache(settings.listing_cache_ttl_seconds)
    app.state.sessions = AdminSessionManager(
        settings.admin_password,
        settings.session_secret,
        ttl_minutes=settings.session_ttl_minutes,
    )

    try:
        yield
    finally:
        logger.info("Shutting down Catalog API")
        await app.state.images.close()
        await db.dispose()


app = FastAPI(
    title="Catalog API",
    description="Product catalog with image storage and admin editing",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, admin auth, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(uploads_router)

# Locally stored images are served by the API itself
if settings.image_storage_backend == "local" and settings.image_public_base_url.startswith("/"):
    app.mount(
        settings.image_public_base_url.rstrip("/") or "/media",
        StaticFiles(directory=settings.image_storage_dir, check_dir=False),
        name="media",
    )


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details or [],
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle rejected caller input."""
    error_code = "INVALID_IMAGE" if exc.field == "image" else "VALIDATION_ERROR"
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        error_code,
        exc.reason,
        [{"field": exc.field, "message": exc.reason}],
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        details.append(
            {
                "field": ".".join(location) or None,
                "message": error.get("msg", "Invalid value"),
            }
        )
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle missing entities."""
    return _error_response(
        request, status.HTTP_404_NOT_FOUND, "PRODUCT_NOT_FOUND", exc.message
    )


@app.exception_handler(DuplicateProductIdError)
async def duplicate_id_error_handler(request: Request, exc: DuplicateProductIdError):
    """Handle id collisions that survived the retry."""
    return _error_response(
        request, status.HTTP_409_CONFLICT, "DUPLICATE_PRODUCT_ID", exc.message
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """Handle rejected admin credentials."""
    return _error_response(
        request,
        status.HTTP_401_UNAUTHORIZED,
        exc.error_code,
        exc.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(InfrastructureError)
async def infrastructure_error_handler(request: Request, exc: InfrastructureError):
    """Handle store failures without leaking their internals."""
    logger.error(
        "Infrastructure failure",
        path=request.url.path,
        method=request.method,
        error=exc.message,
    )
    if isinstance(exc, InfrastructureTimeoutError):
        return _error_response(
            request,
            status.HTTP_504_GATEWAY_TIMEOUT,
            "INFRASTRUCTURE_TIMEOUT",
            "The operation timed out, please retry",
        )
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "INFRASTRUCTURE_ERROR",
        "A backing service is unavailable, please retry",
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Handle any other catalog error."""
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, "CATALOG_ERROR", exc.message
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "NOT_FOUND" if exc.status_code == 404 else "ERROR"
        message = str(detail)
        details = []

    return _error_response(request, exc.status_code, error_code, message, details)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
