"""FastAPI application factory and lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.middleware.request_size import RequestSizeLimitMiddleware
from src.api.openapi.routes import health, uploads, videos
from src.commons.settings.models import Settings
from src.commons.telemetry import configure_logging, get_logger
from src.infrastructure.factory import ASSETS_MOUNT_PATH


UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _setup_logging(settings: Settings) -> None:
    """Send our loggers and uvicorn's through the configured formatter.

    Runs at import, after uvicorn has applied its own logging config, so the
    handlers installed here replace uvicorn's.
    """
    level = settings.telemetry.log_level or settings.app.log_level
    for name in ("src", *UVICORN_LOGGERS):
        configure_logging(
            level=level,
            format_type=settings.telemetry.log_format,
            logger_name=name,
        )
    logging.getLogger().setLevel(level.upper())


_setup_logging(get_settings())
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create providers and buckets on startup; close connections on exit."""
    settings = get_settings()
    await init_services(settings)
    logger.info(
        "Media server started",
        extra={
            "blob_provider": settings.blob_storage.provider,
            "max_thumbnail_bytes": settings.upload.max_thumbnail_bytes,
            "max_video_bytes": settings.upload.max_video_bytes,
        },
    )

    yield

    await shutdown_services()
    logger.info("Media server stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Tubely media server - thumbnail and video uploads",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    _configure_middleware(app, settings)
    _register_routes(app, settings)
    _mount_assets(app, settings)

    return app


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    Starlette runs the last-added middleware first, so the request ID is
    assigned before the size precheck and the error handler see the request.
    """
    # Error handler (as middleware)
    app.middleware("http")(error_handler_middleware)

    upload = settings.upload
    prefix = settings.server.api_prefix
    app.add_middleware(
        RequestSizeLimitMiddleware,
        route_limits={
            f"{prefix}/thumbnail_upload/": upload.max_thumbnail_bytes
            + upload.multipart_overhead_bytes,
            f"{prefix}/video_upload/": upload.max_video_bytes
            + upload.multipart_overhead_bytes,
        },
        default_max_bytes=upload.multipart_overhead_bytes,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware
    app.add_middleware(LoggingMiddleware)


def _register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes."""
    prefix = settings.server.api_prefix

    # Health routes (no prefix for standard health checks)
    app.include_router(health.router, tags=["Health"])

    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(uploads.router, prefix=prefix, tags=["Uploads"])


def _mount_assets(app: FastAPI, settings: Settings) -> None:
    """Serve locally stored assets when the local blob backend is used."""
    blob_settings = settings.blob_storage
    if blob_settings.provider != "local":
        return
    app.mount(
        ASSETS_MOUNT_PATH,
        StaticFiles(
            directory=Path(blob_settings.local_root).resolve(),
            check_dir=False,
        ),
        name="assets",
    )


# Create default app instance
app = create_app()


def run() -> None:
    """Run the server with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
        log_config=None,
    )
