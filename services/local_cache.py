"""
Local cache of the last known catalog.

One JSON file per client holding the rows and the edited keys. Anything
unreadable is treated as "no cached data" and logged, never raised.
"""

import json
import time
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError, TypeAdapter

from models.catalog import CatalogRow
from utils.file_utils import write_json_atomic

logger = structlog.get_logger(__name__)

_rows_adapter = TypeAdapter(list[CatalogRow])


class LocalCache:
    """
    Durable single-entry store for the catalog snapshot.

    File format:
        {"rows": [...], "editedKeys": [...], "savedAt": 1733392800000}

    A bare JSON array of rows (the older format) is also accepted.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, rows: list[CatalogRow], edited_keys: Iterable[str] = ()) -> None:
        """
        Write rows and edited keys, replacing the previous entry.

        Write failures are logged; the caller keeps its in-memory state.
        """
        payload = {
            "rows": [row.to_record() for row in rows],
            "editedKeys": sorted(edited_keys),
            "savedAt": int(time.time() * 1000),
        }

        try:
            write_json_atomic(self.path, payload)
        except OSError as e:
            logger.error(
                "local_cache_write_failed",
                path=str(self.path),
                error=str(e)
            )
            return

        logger.debug(
            "local_cache_saved",
            rows=len(payload["rows"]),
            edited=len(payload["editedKeys"])
        )

    def _read(self) -> Optional[dict]:
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "local_cache_unreadable",
                path=str(self.path),
                error=str(e)
            )
            return None

        if isinstance(data, list):
            return {"rows": data, "editedKeys": []}
        if isinstance(data, dict):
            return data

        logger.warning("local_cache_unexpected_format", type=type(data).__name__)
        return None

    def load(self) -> Optional[list[CatalogRow]]:
        """
        Read cached rows.

        Returns:
            Cached rows, or None when absent or corrupt
        """
        data = self._read()
        if data is None:
            return None

        try:
            return _rows_adapter.validate_python(data.get("rows"))
        except PydanticValidationError as e:
            logger.warning(
                "local_cache_invalid_rows",
                path=str(self.path),
                errors=e.error_count()
            )
            return None

    def load_edited_keys(self) -> set[str]:
        """Read cached edited keys (empty when absent or corrupt)."""
        data = self._read()
        if data is None:
            return set()

        keys = data.get("editedKeys")
        if not isinstance(keys, list):
            return set()
        return {k for k in keys if isinstance(k, str)}

    def clear(self) -> None:
        """Remove the cached entry."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("local_cache_clear_failed", path=str(self.path), error=str(e))
