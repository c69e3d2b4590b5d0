"""
Catalog row schemas.

A catalog row is one product-variant line of the store's product export.
Only four columns matter to the UPC workflow; every other column is kept
verbatim, in its original order, so the catalog can be exported again.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import RootModel, model_validator

HANDLE_FIELD = "Handle"
SKU_FIELD = "Variant SKU"
BARCODE_FIELD = "Variant Barcode"
TITLE_FIELD = "Title"


def variant_key(handle: str, sku: str) -> str:
    """
    Composite edit-tracking key for a variant.

    'widget', 'WID-01' -> 'widget-WID-01'
    """
    return f"{handle}-{sku}"


class CatalogRow(RootModel[dict[str, str]]):
    """
    One product-variant record.

    Wraps the raw field mapping so column order and passthrough fields
    survive a JSON or CSV round trip unchanged.
    """

    @model_validator(mode="before")
    @classmethod
    def coerce_values(cls, data: Any) -> Any:
        """Field values are always strings; None becomes empty."""
        if isinstance(data, CatalogRow):
            return dict(data.root)
        if isinstance(data, dict):
            return {
                str(k): "" if v is None else str(v)
                for k, v in data.items()
            }
        return data

    @classmethod
    def build(
        cls,
        handle: str = "",
        sku: str = "",
        barcode: str = "",
        title: str = "",
        **extra: str
    ) -> "CatalogRow":
        """Create a row from the named columns plus passthrough fields."""
        return cls({
            HANDLE_FIELD: handle,
            TITLE_FIELD: title,
            SKU_FIELD: sku,
            BARCODE_FIELD: barcode,
            **extra,
        })

    @property
    def handle(self) -> str:
        return self.root.get(HANDLE_FIELD, "")

    @property
    def sku(self) -> str:
        return self.root.get(SKU_FIELD, "")

    @property
    def barcode(self) -> str:
        return self.root.get(BARCODE_FIELD, "")

    @property
    def title(self) -> str:
        return self.root.get(TITLE_FIELD, "")

    @property
    def key(self) -> str:
        return variant_key(self.handle, self.sku)

    @property
    def fields(self) -> list[str]:
        return list(self.root)

    def get(self, field: str, default: str = "") -> str:
        return self.root.get(field, default)

    def with_barcode(self, upc: str) -> "CatalogRow":
        """Copy of this row with only the barcode replaced."""
        data = dict(self.root)
        data[BARCODE_FIELD] = upc
        return CatalogRow(data)

    def to_record(self) -> dict[str, str]:
        """Plain dict in original column order."""
        return dict(self.root)


@dataclass(frozen=True)
class DerivedRow:
    """
    Catalog row with computed UPC status.

    Never persisted; always recomputed from the CatalogRow.
    """
    row: CatalogRow
    has_upc: bool
    upc_missing: bool

    @property
    def handle(self) -> str:
        return self.row.handle

    @property
    def sku(self) -> str:
        return self.row.sku

    @property
    def barcode(self) -> str:
        return self.row.barcode

    @property
    def key(self) -> str:
        return self.row.key

    def to_dict(self) -> dict:
        """Row fields plus the computed flags, for API responses."""
        return {
            **self.row.to_record(),
            "hasUPC": self.has_upc,
            "upcMissing": self.upc_missing,
        }
