"""
Business logic services.

Each service handles one concern of the sync pipeline.
"""

from services.local_cache import LocalCache
from services.remote_store import (
    RemoteStore,
    InMemoryRemoteStore,
    FileRemoteStore,
    HttpRemoteStore,
    SupabaseRemoteStore,
    build_remote_store,
)
from services.sync_engine import SyncEngine
from services.dashboard_service import DashboardService

__all__ = [
    "LocalCache",
    "RemoteStore",
    "InMemoryRemoteStore",
    "FileRemoteStore",
    "HttpRemoteStore",
    "SupabaseRemoteStore",
    "build_remote_store",
    "SyncEngine",
    "DashboardService",
]
