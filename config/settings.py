"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SYNC BACKEND
    # ===================
    sync_backend: str = Field(
        default="memory",
        pattern="^(memory|file|http|supabase)$",
        description="Where the shared catalog snapshot lives"
    )
    sync_api_url: Optional[str] = Field(
        None,
        description="URL of a remote /api/sync endpoint (backend 'http')"
    )
    sync_store_path: str = Field(
        default=".upc_cache/shared_snapshot.json",
        description="Snapshot file shared by sessions on this host (backend 'file')"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Seconds between snapshot polls"
    )
    http_timeout_seconds: Optional[float] = Field(
        None,
        gt=0,
        description="Timeout for sync HTTP calls (None = wait indefinitely)"
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )
    sync_table: str = Field(
        default="upc_sync_data",
        description="Table holding the shared snapshot row"
    )
    sync_row_id: int = Field(
        default=1,
        ge=1,
        description="Primary key of the single snapshot row"
    )

    # ===================
    # CATALOG
    # ===================
    local_cache_path: str = Field(
        default=".upc_cache/catalog.json",
        description="Local cache file for the last known catalog"
    )
    seed_csv_path: Optional[str] = Field(
        None,
        description="Product export CSV imported when no snapshot exists"
    )

    # ===================
    # ACCESS
    # ===================
    dashboard_password: Optional[str] = Field(
        None,
        description="Shared password for dashboard routes (unset = open)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the dashboard API"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
