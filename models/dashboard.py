"""
Dashboard schemas: summary counters, table view and edit requests.
"""

from pydantic import Field, ConfigDict, field_validator

from models.base import BaseSchema, WireSchema


class SummaryCounters(WireSchema):
    """
    Counters over the actionable catalog.

    Computed before the UPC-presence filter, so they do not change
    with the "only rows needing a UPC" toggle.
    """

    total: int = Field(0, ge=0)
    with_upc: int = Field(0, ge=0, serialization_alias="withUPC")
    needs_upc: int = Field(0, ge=0, serialization_alias="needsUPC")
    edited: int = Field(0, ge=0)


class VariantView(WireSchema):
    """One table row of the dashboard."""

    key: str
    handle: str
    sku: str
    title: str
    barcode: str
    has_upc: bool = Field(serialization_alias="hasUPC")
    upc_missing: bool = Field(serialization_alias="upcMissing")
    edited: bool


class DashboardView(WireSchema):
    """Filtered table plus counters."""

    rows: list[VariantView]
    counters: SummaryCounters
    only_missing: bool = Field(serialization_alias="onlyMissing")
    shown: int


class UPCUpdate(BaseSchema):
    """
    Set the barcode of one variant.

    handle and sku identify the variant and are matched verbatim;
    upc may be empty to clear it.
    """
    model_config = ConfigDict(str_strip_whitespace=False)

    handle: str = Field(..., min_length=1, description="Product handle")
    sku: str = Field(..., min_length=1, description="Variant SKU")
    upc: str = Field("", max_length=64, description="New barcode value")

    @field_validator("upc")
    @classmethod
    def strip_upc(cls, v: str) -> str:
        """Barcodes never carry surrounding whitespace."""
        return v.strip()


class PasswordCheck(BaseSchema):
    """Dashboard password submission."""

    password: str = Field(..., min_length=1)
