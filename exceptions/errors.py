"""
Custom exception classes for the application.

Every error carries a machine-readable code and an HTTP status so routes
can turn it into the standard error response.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "VARIANT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class AuthenticationError(AppError):
    """Missing or wrong credentials (401)."""

    def __init__(
        self,
        message: str,
        code: str = "UNAUTHORIZED",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=401,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class CatalogParseError(ValidationError):
    """Bulk import file could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CATALOG_PARSE_ERROR",
            message=message,
            details=details
        )


class VariantNotFoundError(NotFoundError):
    """No catalog row matches the (handle, SKU) key."""

    def __init__(self, handle: str, sku: str):
        super().__init__(
            resource="Variant",
            identifier=f"{handle}-{sku}",
            code="VARIANT_NOT_FOUND"
        )


# ===================
# SYNC ERRORS
# ===================

class SyncUnavailableError(ExternalServiceError):
    """The shared snapshot store could not be reached."""

    def __init__(self, backend: str, message: str = "Snapshot store unavailable"):
        super().__init__(
            service="sync",
            message=message,
            details={"backend": backend}
        )


# ===================
# ACCESS ERRORS
# ===================

class InvalidDashboardPasswordError(AuthenticationError):
    """Dashboard password missing or incorrect."""

    def __init__(self):
        super().__init__(
            code="INVALID_DASHBOARD_PASSWORD",
            message="Incorrect password. Please try again."
        )
