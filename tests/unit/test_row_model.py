"""
Unit tests for row derivation and dashboard visibility rules.

Run: pytest tests/unit/test_row_model.py -v
"""

import pytest

from models.catalog import CatalogRow, variant_key
from services.row_model import (
    derive,
    derive_row,
    is_test_handle,
    actionable,
    filter_visible,
    summarize,
    resolve_title,
    build_view,
    NO_TITLE,
)
from tests.factories import CatalogRowFactory


class TestDerive:
    """Tests for derive()"""

    def test_barcode_present_has_upc(self):
        row = CatalogRowFactory.create(barcode="012345678905")

        derived = derive_row(row)

        assert derived.has_upc is True
        assert derived.upc_missing is False

    def test_whitespace_barcode_is_missing(self):
        row = CatalogRowFactory.create(barcode="   ")

        derived = derive_row(row)

        assert derived.has_upc is False
        assert derived.upc_missing is True

    def test_missing_barcode_column_is_missing(self):
        row = CatalogRow({"Handle": "mug", "Variant SKU": "MUG-01"})

        assert derive_row(row).upc_missing is True

    def test_flags_are_negations(self, sample_rows):
        for derived in derive(sample_rows):
            assert derived.has_upc is not derived.upc_missing

    def test_is_pure_and_deterministic(self, sample_rows):
        first = derive(sample_rows)
        second = derive(sample_rows)

        assert first == second
        assert [d.row for d in first] == sample_rows

    def test_preserves_order(self, sample_rows):
        assert [d.key for d in derive(sample_rows)] == [r.key for r in sample_rows]

    def test_to_dict_adds_flags(self):
        row = CatalogRowFactory.create(handle="mug", sku="MUG-01")

        data = derive_row(row).to_dict()

        assert data["Handle"] == "mug"
        assert data["hasUPC"] is False
        assert data["upcMissing"] is True


class TestTestHandle:
    """Tests for is_test_handle()"""

    @pytest.mark.parametrize("handle", ["widget-copy-1", "COPY-of-tee", "tee-Copy"])
    def test_detects_copy_any_case(self, handle):
        assert is_test_handle(handle) is True

    def test_regular_handle(self):
        assert is_test_handle("classic-tee") is False

    def test_empty_handle(self):
        assert is_test_handle("") is False


class TestFilterVisible:
    """Tests for filter_visible()"""

    def test_default_view(self, sample_rows):
        visible = filter_visible(derive(sample_rows), set())

        assert [r.key for r in visible] == ["classic-tee-TEE-S", "mug-MUG-01"]

    def test_copy_handle_never_visible(self):
        row = CatalogRowFactory.create(handle="widget-copy-1", sku="W-1", barcode="")
        derived = derive([row])
        edited = {row.key}

        assert filter_visible(derived, set()) == []
        assert filter_visible(derived, set(), only_missing=True) == []
        assert filter_visible(derived, edited) == []

    def test_empty_sku_never_visible(self):
        row = CatalogRowFactory.create(handle="gift-card", sku="  ", barcode="")

        assert filter_visible(derive([row]), {row.key}) == []

    def test_edited_row_with_upc_stays_visible(self):
        row = CatalogRowFactory.create(handle="tee", sku="TEE-M", barcode="012345678905")

        visible = filter_visible(derive([row]), {variant_key("tee", "TEE-M")})

        assert len(visible) == 1
        assert visible[0].has_upc is True

    def test_only_missing_toggle_overrides_edited(self):
        row = CatalogRowFactory.create(handle="tee", sku="TEE-M", barcode="012345678905")
        derived = derive([row])
        edited = {row.key}

        assert len(filter_visible(derived, edited, only_missing=False)) == 1
        assert filter_visible(derived, edited, only_missing=True) == []

    def test_edited_row_without_upc_visible_with_toggle(self):
        row = CatalogRowFactory.create(handle="tee", sku="TEE-S", barcode="")

        visible = filter_visible(derive([row]), {row.key}, only_missing=True)

        assert len(visible) == 1


class TestSummarize:
    """Tests for summarize()"""

    def test_counts_actionable_rows(self, sample_rows):
        counters = summarize(derive(sample_rows), set())

        assert counters.total == 3
        assert counters.with_upc == 1
        assert counters.needs_upc == 2
        assert counters.edited == 0

    def test_empty_sku_row_excluded_from_counters(self):
        gift_card = CatalogRowFactory.create(handle="gift-card", sku="", barcode="999999999999")

        counters = summarize(derive([gift_card]), {gift_card.key})

        assert counters.total == 0
        assert counters.with_upc == 0
        assert counters.needs_upc == 0

    def test_edited_counts_actionable_edited_rows(self, sample_rows):
        edited = {"classic-tee-TEE-M", "classic-tee-copy-TEE-S-COPY"}

        counters = summarize(derive(sample_rows), edited)

        assert counters.edited == 1

    def test_counters_ignore_toggle(self, sample_rows):
        edited = {"classic-tee-TEE-M"}

        unfiltered = build_view(sample_rows, edited, only_missing=False)
        filtered = build_view(sample_rows, edited, only_missing=True)

        assert unfiltered.counters == filtered.counters
        assert unfiltered.shown != filtered.shown


class TestActionable:
    """Tests for actionable()"""

    def test_drops_copy_and_empty_sku(self, sample_rows):
        keys = [r.key for r in actionable(derive(sample_rows))]

        assert keys == ["classic-tee-TEE-S", "classic-tee-TEE-M", "mug-MUG-01"]


class TestResolveTitle:
    """Tests for resolve_title()"""

    def test_variant_rows_borrow_first_title(self):
        rows = CatalogRowFactory.create_variants("hoodie", ["S", "M", "L"], title="Zip Hoodie")

        assert resolve_title(rows, "hoodie") == "Zip Hoodie"

    def test_no_title_placeholder(self):
        rows = [CatalogRowFactory.create(handle="bare", title="")]

        assert resolve_title(rows, "bare") == NO_TITLE

    def test_unknown_handle(self, sample_rows):
        assert resolve_title(sample_rows, "nope") == NO_TITLE


class TestBuildView:
    """Tests for build_view()"""

    def test_rows_carry_titles_and_edit_flag(self):
        rows = CatalogRowFactory.create_variants("hoodie", ["S", "M"], title="Zip Hoodie")
        edited = {rows[1].key}

        view = build_view(rows, edited)

        assert [r.title for r in view.rows] == ["Zip Hoodie", "Zip Hoodie"]
        assert [r.edited for r in view.rows] == [False, True]
        assert view.shown == 2

    def test_serializes_wire_names(self, sample_rows):
        view = build_view(sample_rows, set())

        data = view.model_dump(by_alias=True)

        assert "withUPC" in data["counters"]
        assert "needsUPC" in data["counters"]
        assert "hasUPC" in data["rows"][0]
        assert data["onlyMissing"] is False
