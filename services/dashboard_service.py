"""
Dashboard controller.

Turns the sync engine's catalog into table views and routes user actions
(UPC edits, imports, exports) back through the engine.
"""

from typing import Union

import structlog

from exceptions import VariantNotFoundError, SyncUnavailableError
from models.dashboard import DashboardView, UPCUpdate
from models.sync import SyncStatus
from parsers.catalog_csv import parse_catalog_csv, export_catalog_csv
from services.row_model import build_view
from services.sync_engine import SyncEngine

logger = structlog.get_logger(__name__)


class DashboardService:
    """
    UPC dashboard operations for one sync engine.

    Reads never touch the store; they render the engine's current rows.
    """

    def __init__(self, engine: SyncEngine):
        self.engine = engine

    def get_view(self, only_missing: bool = False) -> DashboardView:
        """
        Current table and counters.

        Args:
            only_missing: Hide every variant that already has a UPC

        Returns:
            DashboardView
        """
        view = build_view(self.engine.rows, self.engine.edited_keys, only_missing)

        logger.debug(
            "dashboard_view_built",
            shown=view.shown,
            total=view.counters.total,
            only_missing=only_missing
        )

        return view

    async def update_upc(self, data: UPCUpdate) -> DashboardView:
        """
        Set a variant's barcode and return the refreshed view.

        Raises:
            VariantNotFoundError: If no row matches (handle, sku)
        """
        applied = await self.engine.commit_edit(data.handle, data.sku, data.upc)
        if not applied:
            raise VariantNotFoundError(data.handle, data.sku)
        return self.get_view()

    async def import_csv(self, content: Union[str, bytes]) -> DashboardView:
        """
        Replace the catalog from an uploaded product export.

        Raises:
            CatalogParseError: If the file can't be parsed
        """
        rows = parse_catalog_csv(content)
        await self.engine.import_catalog(rows)
        return self.get_view()

    def export_csv(self) -> str:
        """Full catalog (every row, every column) as CSV text."""
        return export_catalog_csv(self.engine.rows)

    async def force_sync(self) -> SyncStatus:
        """
        Push the current catalog to the shared store now.

        Raises:
            SyncUnavailableError: If the store rejected the write
        """
        ok = await self.engine.force_sync()
        if not ok:
            raise SyncUnavailableError(self.engine.store.backend)
        return self.engine.status()

    async def get_status(self) -> dict:
        """Engine status plus a store liveness check."""
        status = self.engine.status()
        return {
            **status.model_dump(mode="json", by_alias=True),
            "storeAvailable": await self.engine.store.is_available(),
        }
