"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.imports import router as imports_router
from routes.photos import router as photos_router
from routes.notifications import router as notifications_router
from routes.alerts import router as alerts_router

__all__ = [
    "imports_router",
    "photos_router",
    "notifications_router",
    "alerts_router",
]
