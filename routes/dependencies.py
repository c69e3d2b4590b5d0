"""
Route dependencies.

Services are built once by the application lifespan and kept on
app.state; routes get them through these functions.
"""

import secrets
from typing import Optional

from fastapi import Header, Request

from config.settings import Settings
from exceptions import InvalidDashboardPasswordError, SyncUnavailableError
from services.dashboard_service import DashboardService
from services.remote_store import RemoteStore
from services.sync_engine import SyncEngine


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sync_engine(request: Request) -> SyncEngine:
    engine = getattr(request.app.state, "sync_engine", None)
    if engine is None:
        raise SyncUnavailableError("engine", "Sync engine is not running")
    return engine


def get_server_store(request: Request) -> RemoteStore:
    """Store behind the /api/sync endpoint."""
    store = getattr(request.app.state, "server_store", None)
    if store is None:
        raise SyncUnavailableError("endpoint", "Snapshot store is not configured")
    return store


def get_dashboard_service(request: Request) -> DashboardService:
    return DashboardService(get_sync_engine(request))


def check_password(settings: Settings, password: Optional[str]) -> bool:
    """True if the dashboard is open or the password matches."""
    expected = settings.dashboard_password
    if not expected:
        return True
    if not password:
        return False
    return secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def require_dashboard_password(
    request: Request,
    x_dashboard_password: Optional[str] = Header(None)
) -> None:
    """
    Shared-secret gate for dashboard routes.

    Raises:
        InvalidDashboardPasswordError: If a password is configured and the
            X-Dashboard-Password header doesn't match
    """
    if not check_password(get_app_settings(request), x_dashboard_password):
        raise InvalidDashboardPasswordError()
