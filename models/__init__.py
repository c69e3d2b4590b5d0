"""
Pydantic models for request/response validation.
"""

from models.base import BaseSchema, WireSchema

from models.catalog import (
    CatalogRow,
    DerivedRow,
    variant_key,
    HANDLE_FIELD,
    SKU_FIELD,
    BARCODE_FIELD,
    TITLE_FIELD,
)

from models.sync import (
    SyncSnapshot,
    SnapshotSaveRequest,
    SnapshotReceipt,
    SyncEnvelope,
    SyncState,
    SyncStatus,
)

from models.dashboard import (
    SummaryCounters,
    VariantView,
    DashboardView,
    UPCUpdate,
    PasswordCheck,
)

__all__ = [
    # Base
    "BaseSchema",
    "WireSchema",

    # Catalog
    "CatalogRow",
    "DerivedRow",
    "variant_key",
    "HANDLE_FIELD",
    "SKU_FIELD",
    "BARCODE_FIELD",
    "TITLE_FIELD",

    # Sync
    "SyncSnapshot",
    "SnapshotSaveRequest",
    "SnapshotReceipt",
    "SyncEnvelope",
    "SyncState",
    "SyncStatus",

    # Dashboard
    "SummaryCounters",
    "VariantView",
    "DashboardView",
    "UPCUpdate",
    "PasswordCheck",
]
