from __future__ import annotations

"""Application factory for the FastAPI gateway.

Centralizes app construction (lifespan, middleware, handlers, routers) so
tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from crpt.api.routes import documents_router, health_router
from crpt.core.config import settings
from crpt.core.dependencies import get_document_service, shutdown_document_service
from crpt.core.exception_handlers import setup_exception_handlers
from crpt.core.logging import configure_logging
from crpt.core.middleware import request_id_middleware


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the limiter schedule on startup; close the client on shutdown."""
    provider = app.dependency_overrides.get(get_document_service, get_document_service)
    provider().dispatcher.limiter.start()
    try:
        yield
    finally:
        await shutdown_document_service()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="CRPT Document Gateway",
        description=(
            "Registers documents with the CRPT document-registration API "
            "through a client-side rate limiter: at most CRPT_REQUEST_LIMIT "
            "calls per CRPT_WINDOW_SECONDS, excess callers wait their turn."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(documents_router, prefix="/v1")
    app.include_router(health_router)

    return app
