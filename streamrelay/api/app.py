"""FastAPI application factory for the streamrelay server."""

import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from streamrelay import __version__
from streamrelay.api.middleware import (
    RequestIDMiddleware,
    ServerHeaderMiddleware,
    setup_error_handlers,
)
from streamrelay.api.routes import health_router, pages_router
from streamrelay.config.settings import Settings, get_settings
from streamrelay.core.logging import get_logger, setup_logging
from streamrelay.rendering import StreamingRenderer
from streamrelay.streaming import StreamingResponseRelay


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    logger.info(
        "server_start",
        host=settings.server.host,
        port=settings.server.port,
        version=__version__,
        category="lifecycle",
    )
    logger.debug(
        "relay_configured",
        media_type=settings.relay.media_type,
        default_headers=sorted(settings.relay.default_headers),
        category="config",
    )

    yield

    logger.debug("server_stop", category="lifecycle")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override. If None, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    if not structlog.is_configured():
        setup_logging(
            json_logs=settings.logging.use_json(sys.stderr.isatty()),
            log_level_name=settings.logging.level,
            log_file=settings.logging.file,
        )

    app = FastAPI(
        title="streamrelay",
        description="Streams server-rendered HTML to clients without buffering",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.renderer = StreamingRenderer()
    app.state.relay = StreamingResponseRelay(
        default_headers=settings.relay.default_headers,
        media_type=settings.relay.media_type,
    )

    setup_error_handlers(app)

    # Last added runs outermost
    app.add_middleware(ServerHeaderMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router, tags=["health"])
    app.include_router(pages_router, tags=["pages"])

    return app


__all__ = ["create_app", "lifespan"]
