"""
Database connection management.

Provides the Supabase client used by the Supabase snapshot store.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class ConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        ConnectionError: If Supabase is not configured or the client can't be built
    """
    if not settings.supabase_configured:
        raise ConnectionError("Supabase is not configured (SUPABASE_URL / SUPABASE_KEY)")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info(
            "supabase_connected",
            status="success"
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


# Convenience alias
db = get_supabase_client


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection(table: Optional[str] = None) -> dict:
    """
    Check database connection health.

    Args:
        table: Table to check (defaults to the sync table)

    Returns:
        dict: Connection status with details
    """
    table = table or settings.sync_table

    try:
        client = get_supabase_client()
        result = client.table(table).select("id", count="exact").limit(1).execute()

        return {
            "status": "healthy",
            "table": table,
            "rows": result.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

