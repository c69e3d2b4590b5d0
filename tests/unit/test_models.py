"""
Unit tests for catalog, sync and dashboard schemas.

Run: pytest tests/unit/test_models.py -v
"""

import pytest
from pydantic import ValidationError

from models.catalog import CatalogRow, variant_key
from models.base import WireSchema
from models.dashboard import DashboardView, SummaryCounters, UPCUpdate, VariantView
from models.sync import SnapshotReceipt, SyncEnvelope, SyncSnapshot, SnapshotSaveRequest


class TestCatalogRow:
    """Tests for CatalogRow"""

    def test_values_coerced_to_text(self):
        row = CatalogRow({"Handle": "mug", "Variant Price": 9.5, "Variant Barcode": None})

        assert row.get("Variant Price") == "9.5"
        assert row.barcode == ""

    def test_missing_named_fields_read_empty(self):
        row = CatalogRow({"Handle": "mug"})

        assert row.sku == ""
        assert row.title == ""
        assert row.get("Status", "draft") == "draft"

    def test_with_barcode_copies(self):
        row = CatalogRow.build(handle="mug", sku="MUG-01", Status="active")

        updated = row.with_barcode("036000291452")

        assert row.barcode == ""
        assert updated.barcode == "036000291452"
        assert updated.fields == row.fields

    def test_key(self):
        assert CatalogRow.build(handle="mug", sku="MUG-01").key == "mug-MUG-01"
        assert variant_key("a-b", "c") == variant_key("a", "b-c")


class TestSyncSnapshot:
    """Tests for SyncSnapshot"""

    def test_defaults(self):
        snapshot = SyncSnapshot()

        assert snapshot.rows == []
        assert snapshot.edited_keys == []
        assert snapshot.last_updated == 0

    def test_wire_names(self):
        snapshot = SyncSnapshot(
            rows=[CatalogRow({"Handle": "mug"})],
            edited_keys=["mug-"],
            last_updated=5,
        )

        assert snapshot.to_wire() == {
            "rows": [{"Handle": "mug"}],
            "editedKeys": ["mug-"],
            "lastUpdated": 5,
        }

    def test_legacy_names(self):
        snapshot = SyncSnapshot.model_validate({
            "products": [{"Handle": "mug"}],
            "editedProducts": ["mug-"],
            "lastUpdated": 7,
        })

        assert snapshot.rows[0].handle == "mug"
        assert snapshot.edited_keys == ["mug-"]

    def test_nulls(self):
        snapshot = SyncSnapshot.model_validate({"rows": None, "editedKeys": None, "lastUpdated": None})

        assert snapshot == SyncSnapshot()

    def test_negative_stamp_rejected(self):
        with pytest.raises(ValidationError):
            SyncSnapshot.model_validate({"lastUpdated": -1})

    def test_save_request_has_no_stamp(self):
        body = SnapshotSaveRequest.model_validate({"rows": [], "editedKeys": [], "lastUpdated": 3})

        assert body.model_dump(by_alias=True) == {"rows": [], "editedKeys": []}


class TestSyncEnvelope:
    """Tests for SyncEnvelope"""

    def test_success_without_data(self):
        assert SyncEnvelope(success=True).to_wire() == {"success": True}

    def test_failure(self):
        assert SyncEnvelope(success=False, error="boom").to_wire() == {
            "success": False,
            "error": "boom",
        }

    def test_save_receipt(self):
        envelope = SyncEnvelope(
            success=True,
            data=SnapshotReceipt(row_count=2, edited_count=1, last_updated=42),
        )

        assert envelope.to_wire() == {
            "success": True,
            "data": {"rowCount": 2, "editedCount": 1, "lastUpdated": 42},
        }


class TestDashboardViews:
    """Tests for SummaryCounters, VariantView and DashboardView"""

    def test_share_wire_base(self):
        for model in (SummaryCounters, VariantView, DashboardView):
            assert issubclass(model, WireSchema)

    def test_view_keeps_values_verbatim(self):
        view = VariantView(
            key=" mug-MUG-01", handle=" mug", sku="MUG-01", title="Mug ",
            barcode="", has_upc=False, upc_missing=True, edited=False,
        )

        assert view.handle == " mug"
        assert view.title == "Mug "

    def test_dumps_camel_case_names(self):
        counters = SummaryCounters(total=3, with_upc=1, needs_upc=2)

        assert counters.model_dump(by_alias=True) == {
            "total": 3, "withUPC": 1, "needsUPC": 2, "edited": 0,
        }


class TestUPCUpdate:
    """Tests for UPCUpdate"""

    def test_upc_trimmed(self):
        data = UPCUpdate(handle="mug", sku="MUG-01", upc=" 036000291452 ")

        assert data.upc == "036000291452"

    def test_handle_and_sku_kept_verbatim(self):
        data = UPCUpdate(handle=" mug", sku="MUG-01 ", upc="1")

        assert data.handle == " mug"
        assert data.sku == "MUG-01 "

    def test_empty_upc_allowed(self):
        assert UPCUpdate(handle="mug", sku="MUG-01").upc == ""

    @pytest.mark.parametrize("payload", [
        {"handle": "", "sku": "MUG-01"},
        {"handle": "mug", "sku": ""},
        {"handle": "mug", "sku": "MUG-01", "upc": "9" * 65},
    ])
    def test_rejects_invalid(self, payload):
        with pytest.raises(ValidationError):
            UPCUpdate(**payload)
