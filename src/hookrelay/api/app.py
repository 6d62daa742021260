"""FastAPI application for hookrelay."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hookrelay import __version__
from hookrelay.config import Settings
from hookrelay.exceptions import (
    DispatchEngineError,
    HookRelayError,
    NotFoundError,
    ValidationError,
)
from hookrelay.logging import configure_logging, get_logger
from hookrelay.service import RelayService

from .router import router, set_service

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the RelayService on startup and close it on shutdown."""
    settings: Settings = app.state.settings

    configure_logging(level=settings.log_level, format=settings.log_format)
    logger.info(
        "Starting hookrelay API",
        batch_size=settings.dispatch_batch_size,
        max_retries=settings.dispatch_max_retries,
    )

    service = RelayService.create(settings)
    await service.initialize()
    set_service(service)

    yield

    await service.close()
    set_service(None)  # type: ignore[arg-type]


def register_exception_handlers(app: FastAPI) -> None:
    """Map hookrelay exceptions to HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning(
            "Validation error", field=exc.field, error=exc.message, path=str(request.url)
        )
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle not found errors with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(DispatchEngineError)
    async def dispatch_error_handler(request: Request, exc: DispatchEngineError) -> JSONResponse:
        """Handle dispatch runs that could not start with 500 status."""
        logger.error("Dispatch failed", error=exc.message, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())

    @app.exception_handler(HookRelayError)
    async def hookrelay_error_handler(request: Request, exc: HookRelayError) -> JSONResponse:
        """Handle all other hookrelay errors with 500 status."""
        logger.error("hookrelay error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.

    Returns:
        Configured FastAPI application.

    Example:
        ```python
        from hookrelay.api import create_app

        app = create_app()
        # Run with: uvicorn hookrelay.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="hookrelay",
        description="Webhook registry with batched, retrying fan-out delivery.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            max_age=settings.cors_max_age,
        )

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
