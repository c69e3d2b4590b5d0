"""
Shared snapshot stores.

A RemoteStore holds the one authoritative catalog snapshot that every
dashboard session polls. Writes replace the whole snapshot and are
stamped by the store, so the newest write wins. Every backend fails soft:
errors are logged and reported as None, never raised.

Backends:
    memory   - in-process; also backs the /api/sync endpoint
    file     - JSON file shared by sessions on one host
    http     - remote /api/sync endpoint
    supabase - single row in a Supabase table
"""

from abc import ABC, abstractmethod
import asyncio
import json
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import requests
import structlog
from pydantic import ValidationError as PydanticValidationError

from config.settings import Settings
from models.catalog import CatalogRow
from models.sync import SyncSnapshot, SnapshotSaveRequest
from utils.file_utils import write_json_atomic

logger = structlog.get_logger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def next_stamp(clock: Clock, previous: int) -> int:
    """Stamp for a new write; strictly greater than the previous one."""
    return max(clock(), previous + 1)


class RemoteStore(ABC):
    """Where the shared snapshot lives."""

    backend: str = "abstract"

    @abstractmethod
    async def load_snapshot(self) -> Optional[SyncSnapshot]:
        """
        Fetch the current snapshot.

        Returns:
            The snapshot (last_updated 0 if nothing was ever written),
            or None when the store could not be read
        """

    @abstractmethod
    async def save_snapshot(
        self,
        rows: list[CatalogRow],
        edited_keys: Iterable[str]
    ) -> Optional[int]:
        """
        Replace the snapshot wholesale, stamping last_updated at write time.

        Returns:
            The stamp the write was given (0 if the store accepted it
            without reporting one), or None when the write failed
        """

    @abstractmethod
    async def is_available(self) -> bool:
        """Best-effort liveness check (diagnostics only)."""


# ===================
# IN-MEMORY
# ===================

class InMemoryRemoteStore(RemoteStore):
    """
    Snapshot held in process memory.

    Lost on restart. Every load returns a copy so callers never share
    state with the store.
    """

    backend = "memory"

    def __init__(self, clock: Clock = now_ms):
        self._clock = clock
        self._snapshot = SyncSnapshot()

    async def load_snapshot(self) -> Optional[SyncSnapshot]:
        return self._snapshot.model_copy(deep=True)

    async def save_snapshot(
        self,
        rows: list[CatalogRow],
        edited_keys: Iterable[str]
    ) -> Optional[int]:
        self._snapshot = SyncSnapshot(
            rows=[CatalogRow(row.to_record()) for row in rows],
            edited_keys=sorted(set(edited_keys)),
            last_updated=next_stamp(self._clock, self._snapshot.last_updated),
        )

        logger.info(
            "snapshot_stored",
            backend=self.backend,
            rows=len(self._snapshot.rows),
            edited=len(self._snapshot.edited_keys),
            last_updated=self._snapshot.last_updated
        )
        return self._snapshot.last_updated

    async def is_available(self) -> bool:
        return True


# ===================
# FILE
# ===================

class FileRemoteStore(RemoteStore):
    """
    Snapshot kept in a JSON file that several sessions share.

    The file holds the snapshot in wire format. Writes go through a unique
    temp file swapped in with os.replace, and the read-stamp-write sequence
    holds a lock so concurrent saves from one process stay ordered.
    """

    backend = "file"

    def __init__(self, path: Union[str, Path], clock: Clock = now_ms):
        self.path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()

    def _read(self) -> Optional[SyncSnapshot]:
        if not self.path.exists():
            return SyncSnapshot()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return SyncSnapshot.model_validate(data)
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(
                "snapshot_file_unreadable",
                path=str(self.path),
                error=str(e)
            )
            return None

    def _write(self, rows: list[CatalogRow], edited_keys: list[str]) -> Optional[int]:
        with self._lock:
            current = self._read()
            previous = current.last_updated if current else 0

            snapshot = SyncSnapshot(
                rows=rows,
                edited_keys=edited_keys,
                last_updated=next_stamp(self._clock, previous),
            )

            try:
                write_json_atomic(self.path, snapshot.to_wire())
            except OSError as e:
                logger.error(
                    "snapshot_file_write_failed",
                    path=str(self.path),
                    error=str(e)
                )
                return None

        logger.info(
            "snapshot_stored",
            backend=self.backend,
            rows=len(rows),
            last_updated=snapshot.last_updated
        )
        return snapshot.last_updated

    async def load_snapshot(self) -> Optional[SyncSnapshot]:
        return await asyncio.to_thread(self._read)

    async def save_snapshot(
        self,
        rows: list[CatalogRow],
        edited_keys: Iterable[str]
    ) -> Optional[int]:
        return await asyncio.to_thread(self._write, list(rows), sorted(set(edited_keys)))

    async def is_available(self) -> bool:
        return await self.load_snapshot() is not None


# ===================
# HTTP
# ===================

class HttpRemoteStore(RemoteStore):
    """
    Client of a remote /api/sync endpoint.

    The endpoint stamps lastUpdated with its own clock. Calls run in a
    worker thread so polling never blocks the event loop.
    """

    backend = "http"

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self) -> Optional[SyncSnapshot]:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("snapshot_fetch_failed", url=self.url, error=str(e))
            return None

        if not isinstance(result, dict) or not result.get("success") or result.get("data") is None:
            logger.warning(
                "snapshot_fetch_rejected",
                url=self.url,
                error=result.get("error") if isinstance(result, dict) else None
            )
            return None

        try:
            return SyncSnapshot.model_validate(result["data"])
        except PydanticValidationError as e:
            logger.warning(
                "snapshot_payload_invalid",
                url=self.url,
                errors=e.error_count()
            )
            return None

    def _post(self, rows: list[CatalogRow], edited_keys: list[str]) -> Optional[int]:
        body = SnapshotSaveRequest(rows=rows, edited_keys=edited_keys)
        try:
            response = self.session.post(
                self.url,
                json=body.model_dump(mode="json", by_alias=True),
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("snapshot_push_failed", url=self.url, error=str(e))
            return None

        if not isinstance(result, dict) or result.get("success") is not True:
            logger.warning("snapshot_push_rejected", url=self.url, response=result)
            return None

        # Endpoints that do not echo the stamp still count as accepted
        data = result.get("data")
        stamp = data.get("lastUpdated") if isinstance(data, dict) else None
        if not isinstance(stamp, int) or isinstance(stamp, bool) or stamp < 0:
            stamp = 0

        logger.info("snapshot_pushed", url=self.url, rows=len(rows), last_updated=stamp)
        return stamp

    def _ping(self) -> bool:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            return response.ok
        except requests.RequestException as e:
            logger.warning("snapshot_endpoint_unreachable", url=self.url, error=str(e))
            return False

    async def load_snapshot(self) -> Optional[SyncSnapshot]:
        return await asyncio.to_thread(self._get)

    async def save_snapshot(
        self,
        rows: list[CatalogRow],
        edited_keys: Iterable[str]
    ) -> Optional[int]:
        return await asyncio.to_thread(self._post, list(rows), sorted(set(edited_keys)))

    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._ping)


# ===================
# SUPABASE
# ===================

class SupabaseRemoteStore(RemoteStore):
    """
    Snapshot stored as JSON in a single Supabase row.

    Row layout: {id: <row_id>, data: <snapshot>, updated_at: <iso time>}.
    The stamp is taken at write time and kept above the stored one, so it
    keeps increasing even if writer clocks disagree.
    """

    backend = "supabase"

    def __init__(
        self,
        client_factory: Callable,
        table: str = "upc_sync_data",
        row_id: int = 1,
        clock: Clock = now_ms
    ):
        self._client_factory = client_factory
        self.table = table
        self.row_id = row_id
        self._clock = clock
        self._lock = threading.Lock()

    def _fetch(self) -> Optional[SyncSnapshot]:
        try:
            client = self._client_factory()
            result = (
                client.table(self.table)
                .select("data")
                .eq("id", self.row_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning(
                "supabase_load_failed",
                table=self.table,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

        if not result.data:
            logger.info("supabase_snapshot_empty", table=self.table)
            return SyncSnapshot()

        try:
            return SyncSnapshot.model_validate(result.data[0].get("data") or {})
        except PydanticValidationError as e:
            logger.warning(
                "supabase_snapshot_invalid",
                table=self.table,
                errors=e.error_count()
            )
            return None

    def _upsert(self, rows: list[CatalogRow], edited_keys: list[str]) -> Optional[int]:
        with self._lock:
            current = self._fetch()
            previous = current.last_updated if current else 0

            snapshot = SyncSnapshot(
                rows=rows,
                edited_keys=edited_keys,
                last_updated=next_stamp(self._clock, previous),
            )

            try:
                client = self._client_factory()
                client.table(self.table).upsert(
                    {
                        "id": self.row_id,
                        "data": snapshot.to_wire(),
                        "updated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
                    },
                    on_conflict="id",
                ).execute()
            except Exception as e:
                logger.error(
                    "supabase_save_failed",
                    table=self.table,
                    error=str(e),
                    error_type=type(e).__name__
                )
                return None

        logger.info(
            "snapshot_stored",
            backend=self.backend,
            rows=len(rows),
            last_updated=snapshot.last_updated
        )
        return snapshot.last_updated

    def _ping(self) -> bool:
        try:
            client = self._client_factory()
            client.table(self.table).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning("supabase_unavailable", table=self.table, error=str(e))
            return False

    async def load_snapshot(self) -> Optional[SyncSnapshot]:
        return await asyncio.to_thread(self._fetch)

    async def save_snapshot(
        self,
        rows: list[CatalogRow],
        edited_keys: Iterable[str]
    ) -> Optional[int]:
        return await asyncio.to_thread(self._upsert, list(rows), sorted(set(edited_keys)))

    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._ping)


# ===================
# FACTORY
# ===================

def build_remote_store(settings: Settings) -> RemoteStore:
    """
    Create the snapshot store selected by SYNC_BACKEND.

    Args:
        settings: Application settings

    Returns:
        RemoteStore for the configured backend
    """
    backend = settings.sync_backend
    logger.info("building_remote_store", backend=backend)

    if backend == "file":
        return FileRemoteStore(settings.sync_store_path)

    if backend == "http":
        if not settings.sync_api_url:
            raise ValueError("SYNC_API_URL is required for the http sync backend")
        return HttpRemoteStore(settings.sync_api_url, timeout=settings.http_timeout_seconds)

    if backend == "supabase":
        from config.database import get_supabase_client

        return SupabaseRemoteStore(
            client_factory=get_supabase_client,
            table=settings.sync_table,
            row_id=settings.sync_row_id,
        )

    return InMemoryRemoteStore()
