"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,

    # Catalog
    CatalogParseError,
    VariantNotFoundError,

    # Sync
    SyncUnavailableError,

    # Access
    InvalidDashboardPasswordError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",

    # Catalog
    "CatalogParseError",
    "VariantNotFoundError",

    # Sync
    "SyncUnavailableError",

    # Access
    "InvalidDashboardPasswordError",
]
