from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import health_router, posts_router
from app.core.config import settings
from app.core.database import create_tables, dispose_db, init_db
from app.core.exception_handlers import setup_exception_handlers
from app.core.identity import close_identity_directory
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import close_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database on startup; release external clients on shutdown."""
    init_db(settings.database.url, echo=settings.database.echo)
    if settings.database.create_tables:
        await create_tables()
    logger.info("app.startup", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        await close_identity_directory()
        await close_rate_limiter()
        await dispose_db()
        logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Posts API",
        description=(
            "API for a short-post social feed: list the newest posts, list "
            "posts by author and publish posts. Authors are resolved from the "
            "identity provider; publishing requires a session and is limited "
            "to 3 posts per rolling minute per user."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(posts_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
