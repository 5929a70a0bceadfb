"""stylegate - Main Application Entry Point.

Serves a directory of stylesheets through the autoprefixer middleware.
Any other ASGI app can mount ``AutoprefixerMiddleware`` the same way.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from .config import Settings, get_settings
from .middleware import AutoprefixerMiddleware


def configure_logging(settings: Settings) -> None:
    """Configure structured logging on top of the stdlib logging module."""
    logging.basicConfig(format="%(message)s", level=settings.log_level)

    if settings.log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings())

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "Starting stylegate",
        version=settings.app_version,
        environment=settings.environment,
        browsers=settings.prefixer_browsers_list,
    )
    yield
    logger.info("Shutting down stylegate")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Vendor-prefixing stylesheet server",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        AutoprefixerMiddleware,
        browsers=settings.prefixer_browsers_list,
        cascade=settings.prefixer_cascade,
        remove=settings.prefixer_remove,
        cache_size=settings.content_type_cache_size,
    )

    register_routes(app, settings)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount(settings.static_url_path, StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("Static directory not found, serving no stylesheets", static_dir=str(static_dir))

    return app


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all application routes."""

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint. Always returns 200 if the service is running."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    if settings.enable_metrics:

        @app.get("/metrics", tags=["Observability"])
        async def metrics() -> Response:
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(),
                media_type=CONTENT_TYPE_LATEST,
            )


# Create the application instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "stylegate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
