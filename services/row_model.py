"""
Row derivation and visibility rules for the UPC dashboard.

Pure functions only: the same rows and edited keys always give the same
view. The visibility filter runs in a fixed order; each stage narrows the
candidates for the next:

    1. Drop test products (handle contains "copy", any case)
    2. Drop variants without a SKU
    3. Drop variants that already have a UPC, unless edited this session
    4. With "only missing" on, drop every variant that has a UPC

Summary counters only use stages 1-2, so the toggle never moves them.
"""

from typing import Iterable

from models.catalog import CatalogRow, DerivedRow
from models.dashboard import SummaryCounters, VariantView, DashboardView

TEST_HANDLE_MARKER = "copy"
NO_TITLE = "No Title"


def has_value(value: str) -> bool:
    """True if value is non-empty after trimming."""
    return bool(value and value.strip())


def derive_row(row: CatalogRow) -> DerivedRow:
    """Attach UPC status to one catalog row."""
    has_upc = has_value(row.barcode)
    return DerivedRow(row=row, has_upc=has_upc, upc_missing=not has_upc)


def derive(rows: Iterable[CatalogRow]) -> list[DerivedRow]:
    """Derive every row, preserving order."""
    return [derive_row(row) for row in rows]


def is_test_handle(handle: str) -> bool:
    """Staging copies carry "copy" somewhere in the handle."""
    return TEST_HANDLE_MARKER in (handle or "").lower()


def has_sku(row: DerivedRow) -> bool:
    return has_value(row.sku)


def actionable(derived: Iterable[DerivedRow]) -> list[DerivedRow]:
    """Stages 1-2: real products with a SKU."""
    candidates = [r for r in derived if not is_test_handle(r.handle)]
    return [r for r in candidates if has_sku(r)]


def filter_visible(
    derived: Iterable[DerivedRow],
    edited_keys: set[str],
    only_missing: bool = False
) -> list[DerivedRow]:
    """
    Rows shown in the dashboard table.

    Args:
        derived: Derived rows in catalog order
        edited_keys: Keys edited during this session
        only_missing: "Only rows needing a UPC" toggle

    Returns:
        Visible rows in catalog order
    """
    candidates = actionable(derived)

    # Stage 3: a row with a UPC stays only if edited this session
    candidates = [
        r for r in candidates
        if r.upc_missing or r.key in edited_keys
    ]

    if only_missing:
        candidates = [r for r in candidates if not r.has_upc]

    return candidates


def summarize(
    derived: Iterable[DerivedRow],
    edited_keys: set[str]
) -> SummaryCounters:
    """Counters over the actionable catalog (stages 1-2 only)."""
    rows = actionable(derived)
    return SummaryCounters(
        total=len(rows),
        with_upc=sum(1 for r in rows if r.has_upc),
        needs_upc=sum(1 for r in rows if r.upc_missing),
        edited=sum(1 for r in rows if r.key in edited_keys),
    )


def resolve_title(rows: Iterable[CatalogRow], handle: str) -> str:
    """
    Product title for a handle.

    Only the first variant of a product carries the title in the export,
    so look for any row of the same handle that has one.
    """
    for row in rows:
        if row.handle == handle and has_value(row.title):
            return row.title
    return NO_TITLE


def _title_index(rows: Iterable[CatalogRow]) -> dict[str, str]:
    titles: dict[str, str] = {}
    for row in rows:
        if row.handle not in titles and has_value(row.title):
            titles[row.handle] = row.title
    return titles


def build_view(
    rows: list[CatalogRow],
    edited_keys: set[str],
    only_missing: bool = False
) -> DashboardView:
    """
    Full dashboard view: visible rows with titles plus counters.

    Args:
        rows: Current catalog rows
        edited_keys: Keys edited during this session
        only_missing: "Only rows needing a UPC" toggle

    Returns:
        DashboardView
    """
    derived = derive(rows)
    visible = filter_visible(derived, edited_keys, only_missing)
    titles = _title_index(rows)

    view_rows = [
        VariantView(
            key=r.key,
            handle=r.handle,
            sku=r.sku,
            title=titles.get(r.handle, NO_TITLE),
            barcode=r.barcode,
            has_upc=r.has_upc,
            upc_missing=r.upc_missing,
            edited=r.key in edited_keys,
        )
        for r in visible
    ]

    return DashboardView(
        rows=view_rows,
        counters=summarize(derived, edited_keys),
        only_missing=only_missing,
        shown=len(view_rows),
    )
