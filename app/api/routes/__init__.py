from __future__ import annotations

from app.api.routes.extension import router as extension_router
from app.api.routes.health import router as health_router
from app.api.routes.results import router as results_router
from app.api.routes.subscribe import router as subscribe_router
from app.api.routes.tools import router as tools_router

__all__ = ["extension_router", "health_router", "results_router", "subscribe_router", "tools_router"]
