"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build fresh instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import (
    extension_router,
    health_router,
    results_router,
    subscribe_router,
    tools_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="KushSavvy Tools API",
        description=(
            "AI-generated cannabis tool results (strain recommendations, comparisons, "
            "CBD vs THC, tolerance plans, grow timelines, terpene guides) behind "
            "per-visitor daily quotas, with shareable result links and a results sitemap."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(tools_router, prefix="/api")
    app.include_router(extension_router)
    app.include_router(results_router)
    app.include_router(subscribe_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
