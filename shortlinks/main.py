"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Rate limiting
- Service container lifecycle (startup / shutdown)
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortlinks.api import endpoints
from shortlinks.core.container import ServiceContainer
from shortlinks.core.logging_config import setup_logging
from shortlinks.core.rate_limit import limiter
from shortlinks.core.setting import EnvSettingsOptions, Settings, settings as default_settings
from shortlinks.middleware.logging import add_logging_middleware

VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to environment settings)
        container: Pre-built container (tests pass one wired to fakes)
    """
    settings = settings or default_settings
    container = container or ServiceContainer(settings)
    # Interactive docs are not served in production
    show_docs = settings.ENV_SETTING != EnvSettingsOptions.production

    app = FastAPI(
        title="Short Link Service",
        description="Short link resolution with visit analytics",
        version=VERSION,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
    )

    app.state.container = container
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "message": "Short Link Service",
            "version": VERSION,
            "docs": "/docs" if show_docs else None
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy" if container.initialized else "starting",
            "pending_recordings": (
                container.recording_queue.pending if container.recording_queue else 0
            ),
        }

    app.include_router(endpoints.router, tags=["Short Links"])

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup."""
        setup_logging(settings.LOG_LEVEL)
        await container.initialize()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Drain recordings and release resources on shutdown."""
        await container.shutdown()

    return app


app = create_app()
