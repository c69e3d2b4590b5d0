"""
Snapshot schemas exchanged with the shared snapshot store.

Wire format (camelCase):
    {"rows": [...], "editedKeys": [...], "lastUpdated": 1733392800000}

Older clients sent "products" / "editedProducts"; both are still accepted
on input.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import AliasChoices, Field, field_validator

from models.base import WireSchema
from models.catalog import CatalogRow


class SyncSnapshot(WireSchema):
    """
    Whole-catalog state, timestamped by the store at write time.

    last_updated is epoch milliseconds and is the only change signal.
    """

    rows: list[CatalogRow] = Field(
        default_factory=list,
        validation_alias=AliasChoices("rows", "products"),
        serialization_alias="rows",
    )
    edited_keys: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("editedKeys", "editedProducts", "edited_keys"),
        serialization_alias="editedKeys",
    )
    last_updated: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("lastUpdated", "last_updated"),
        serialization_alias="lastUpdated",
    )

    @field_validator("rows", "edited_keys", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        """Stores that never saw a write return null collections."""
        return [] if v is None else v

    @field_validator("last_updated", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return 0 if v is None else v

    def to_wire(self) -> dict:
        """Serialize with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class SnapshotSaveRequest(WireSchema):
    """Body of a snapshot write. The store stamps lastUpdated itself."""

    rows: list[CatalogRow] = Field(
        default_factory=list,
        validation_alias=AliasChoices("rows", "products"),
        serialization_alias="rows",
    )
    edited_keys: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("editedKeys", "editedProducts", "edited_keys"),
        serialization_alias="editedKeys",
    )

    @field_validator("rows", "edited_keys", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class SnapshotReceipt(WireSchema):
    """Answer to a snapshot write: what was stored and the stamp it got."""

    row_count: int = Field(0, ge=0, serialization_alias="rowCount")
    edited_count: int = Field(0, ge=0, serialization_alias="editedCount")
    last_updated: int = Field(0, ge=0, serialization_alias="lastUpdated")


class SyncEnvelope(WireSchema):
    """
    Response envelope of the /api/sync endpoint.

    GET success:  {"success": true, "data": {...snapshot...}}
    POST success: {"success": true, "data": {"rowCount", "editedCount", "lastUpdated"}}
    Failure:      {"success": false, "error": "..."}
    """

    success: bool
    data: Optional[Union[SyncSnapshot, SnapshotReceipt]] = None
    error: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SyncState(str, Enum):
    """Sync engine poll-cycle states."""
    IDLE = "IDLE"
    POLLING = "POLLING"
    APPLYING = "APPLYING"
    SKIPPING = "SKIPPING"


class SyncStatus(WireSchema):
    """Diagnostic view of a sync engine."""

    state: SyncState
    polling: bool
    saving: bool
    last_seen: int = Field(serialization_alias="lastSeen")
    row_count: int = Field(serialization_alias="rowCount")
    edited_count: int = Field(serialization_alias="editedCount")
    last_save_ok: Optional[bool] = Field(None, serialization_alias="lastSaveOk")
    backend: str
