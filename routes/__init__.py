"""
API route modules.

Each module defines routes for one area.
"""

from routes.sync import router as sync_router
from routes.dashboard import router as dashboard_router

__all__ = [
    "sync_router",
    "dashboard_router",
]
