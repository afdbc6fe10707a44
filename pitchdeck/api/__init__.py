"""API routes module."""

from .presentations import router as presentations_router
from .versions import router as versions_router
from .analytics import router as analytics_router
from .templates import router as templates_router
from .system import router as system_router

__all__ = [
    "presentations_router",
    "versions_router",
    "analytics_router",
    "templates_router",
    "system_router",
]
