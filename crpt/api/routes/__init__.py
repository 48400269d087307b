from __future__ import annotations

from crpt.api.routes.documents import router as documents_router
from crpt.api.routes.health import router as health_router

__all__ = ["documents_router", "health_router"]
