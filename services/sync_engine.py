"""
Catalog sync engine.

Keeps one client's view of the catalog in step with the shared snapshot
store by polling it on a fixed period and pushing local edits back.

Poll cycle:
    IDLE -> POLLING -> APPLYING (snapshot newer than last seen)
                    -> SKIPPING (not newer, or load failed)
         -> IDLE

Edits are applied locally first, written to the local cache, then pushed
in the background. Pushes run one at a time and each writes the state as
it is when its turn comes, so an older push never lands after a newer one.
The stamp of a successful push becomes last seen, so the next poll does
not re-apply this client's own write over edits made since.

The store keeps whichever whole snapshot was written last: two sessions
editing different rows inside one poll window can overwrite each other,
and the later save wins. This engine does not merge.

All state is touched only from coroutines on one event loop.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional, Union

import structlog

from models.catalog import CatalogRow, variant_key
from models.sync import SyncState, SyncStatus
from services.local_cache import LocalCache
from services.remote_store import RemoteStore

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0

ChangeCallback = Callable[[list[CatalogRow], set[str]], Union[None, Awaitable[None]]]


class SyncEngine:
    """
    Poll/apply/push loop for one client.

    Usage:
        engine = SyncEngine(store, cache, poll_interval=5.0)
        await engine.initialize(seed_rows)
        engine.start_polling(on_change)
        ...
        await engine.commit_edit("widget", "WID-01", "012345678905")
        ...
        await engine.stop()
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: LocalCache,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_change: Optional[ChangeCallback] = None
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.store = store
        self.cache = cache
        self.poll_interval = poll_interval
        self.on_change = on_change

        self._rows: list[CatalogRow] = []
        self._edited_keys: set[str] = set()
        self._last_seen = 0

        self._state = SyncState.IDLE
        self._active = True
        self._poll_task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None
        self._save_tasks: set[asyncio.Task] = set()
        self._push_lock = asyncio.Lock()
        self._applied = 0
        self._last_save_ok: Optional[bool] = None

    # ===================
    # READ-ONLY STATE
    # ===================

    @property
    def rows(self) -> list[CatalogRow]:
        return list(self._rows)

    @property
    def edited_keys(self) -> set[str]:
        return set(self._edited_keys)

    @property
    def last_seen(self) -> int:
        return self._last_seen

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_polling(self) -> bool:
        return (
            self._poll_task is not None
            and not self._poll_task.done()
            and self._wake is not None
            and not self._wake.is_set()
        )

    @property
    def is_saving(self) -> bool:
        return any(not t.done() for t in self._save_tasks)

    def status(self) -> SyncStatus:
        """Diagnostic snapshot of the engine."""
        return SyncStatus(
            state=self._state,
            polling=self.is_polling,
            saving=self.is_saving,
            last_seen=self._last_seen,
            row_count=len(self._rows),
            edited_count=len(self._edited_keys),
            last_save_ok=self._last_save_ok,
            backend=self.store.backend,
        )

    # ===================
    # STARTUP
    # ===================

    async def initialize(self, seed_rows: Optional[list[CatalogRow]] = None) -> str:
        """
        Load the starting catalog.

        Order: shared snapshot (if it has rows), then local cache, then
        seed rows from a bulk import (pushed to the store).

        Args:
            seed_rows: Rows to import when nothing else is available

        Returns:
            Source used: "remote", "cache", "seed" or "empty"
        """
        snapshot = await self.store.load_snapshot()
        if snapshot is not None and snapshot.rows:
            self._replace(snapshot.rows, snapshot.edited_keys, snapshot.last_updated)
            self.cache.save(self._rows, self._edited_keys)
            logger.info("catalog_initialized", source="remote", rows=len(self._rows))
            return "remote"

        cached = self.cache.load()
        if cached:
            self._replace(cached, self.cache.load_edited_keys(), self._last_seen)
            logger.info("catalog_initialized", source="cache", rows=len(self._rows))
            return "cache"

        if seed_rows:
            await self.import_catalog(seed_rows)
            await self.flush()
            logger.info("catalog_initialized", source="seed", rows=len(self._rows))
            return "seed"

        logger.warning("catalog_initialized_empty")
        return "empty"

    # ===================
    # POLLING
    # ===================

    def start_polling(self, on_change: Optional[ChangeCallback] = None) -> None:
        """
        Start the periodic poll task (first poll runs immediately).

        Calling again while polling only replaces the callback.
        """
        if on_change is not None:
            self.on_change = on_change

        self._active = True
        if self.is_polling:
            return

        wake = asyncio.Event()
        self._wake = wake
        self._poll_task = asyncio.create_task(self._poll_loop(wake))
        logger.info("sync_polling_started", interval=self.poll_interval, backend=self.store.backend)

    def stop_polling(self) -> None:
        """
        Stop polling. Safe to call repeatedly.

        The next tick is cancelled; a load already in flight finishes but
        its result is dropped.
        """
        was_polling = self.is_polling
        self._active = False
        if self._wake is not None:
            self._wake.set()

        if was_polling:
            logger.info("sync_polling_stopped")

    async def _poll_loop(self, wake: asyncio.Event) -> None:
        # Each loop owns its wake event; setting it ends that loop only
        while not wake.is_set():
            await self.poll_once()
            if wake.is_set():
                break
            try:
                await asyncio.wait_for(wake.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def poll_once(self) -> bool:
        """
        Run one poll cycle.

        Returns:
            True if a newer snapshot was applied
        """
        if not self._active:
            return False

        self._state = SyncState.POLLING
        snapshot = await self.store.load_snapshot()

        if not self._active:
            logger.debug("sync_poll_result_dropped", reason="stopped")
            self._state = SyncState.IDLE
            return False

        if snapshot is None:
            logger.warning("sync_poll_failed", backend=self.store.backend)
            self._state = SyncState.IDLE
            return False

        if snapshot.last_updated <= self._last_seen:
            self._state = SyncState.SKIPPING
            logger.debug(
                "sync_snapshot_skipped",
                remote=snapshot.last_updated,
                last_seen=self._last_seen
            )
            self._state = SyncState.IDLE
            return False

        self._state = SyncState.APPLYING
        self._replace(snapshot.rows, snapshot.edited_keys, snapshot.last_updated)
        self._applied += 1
        self.cache.save(self._rows, self._edited_keys)

        logger.info(
            "sync_snapshot_applied",
            last_updated=snapshot.last_updated,
            rows=len(self._rows),
            edited=len(self._edited_keys)
        )

        await self._notify()
        self._state = SyncState.IDLE
        return True

    def _replace(self, rows: Iterable[CatalogRow], edited_keys: Iterable[str], last_seen: int) -> None:
        self._rows = list(rows)
        self._edited_keys = set(edited_keys)
        self._last_seen = last_seen

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            result = self.on_change(self.rows, self.edited_keys)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(
                "sync_change_callback_failed",
                error=str(e),
                error_type=type(e).__name__
            )

    # ===================
    # LOCAL EDITS
    # ===================

    async def commit_edit(self, handle: Optional[str], sku: Optional[str], upc: str) -> bool:
        """
        Set the barcode of every row matching (handle, sku).

        The local cache is written before the push is scheduled; the push
        runs in the background and a failure does not undo the edit.

        Returns:
            False (no-op) if handle/sku is missing or no row matches
        """
        if not handle or not sku:
            logger.debug("edit_ignored", reason="no_selection")
            return False

        matched = False
        updated: list[CatalogRow] = []
        for row in self._rows:
            if row.handle == handle and row.sku == sku:
                updated.append(row.with_barcode(upc))
                matched = True
            else:
                updated.append(row)

        if not matched:
            logger.info("edit_ignored", reason="no_matching_variant", handle=handle, sku=sku)
            return False

        key = variant_key(handle, sku)
        self._rows = updated
        self._edited_keys.add(key)
        self.cache.save(self._rows, self._edited_keys)

        logger.info("variant_upc_updated", key=key, has_upc=bool(upc.strip()))

        self._schedule_push()
        return True

    async def import_catalog(self, rows: list[CatalogRow]) -> None:
        """
        Replace the whole catalog with a fresh bulk import.

        Clears the edited keys and pushes the new catalog in the background.
        """
        self._rows = list(rows)
        self._edited_keys = set()
        self.cache.save(self._rows, self._edited_keys)

        logger.info("catalog_imported", rows=len(self._rows))
        self._schedule_push()

    async def force_sync(self) -> bool:
        """Push the current catalog now and wait for the result."""
        logger.info("sync_forced", rows=len(self._rows))
        return await self._push()

    def _schedule_push(self) -> None:
        task = asyncio.create_task(self._push())
        self._save_tasks.add(task)
        task.add_done_callback(self._save_tasks.discard)

    async def _push(self) -> bool:
        """
        Write the current rows and edited keys to the store.

        Pushes queue on a lock; the state is read once the lock is held,
        so the last push to finish always carries the newest edits.
        """
        async with self._push_lock:
            rows = list(self._rows)
            edited_keys = set(self._edited_keys)
            applied_before = self._applied

            stamp = await self.store.save_snapshot(rows, edited_keys)

            self._last_save_ok = stamp is not None
            if stamp is None:
                logger.warning(
                    "sync_push_failed",
                    backend=self.store.backend,
                    rows=len(rows)
                )
                return False

            # A poll applied mid-write replaced the pushed rows; the next
            # poll must then read the store back
            if self._applied == applied_before and stamp > self._last_seen:
                self._last_seen = stamp

            logger.debug("sync_pushed", last_updated=stamp, rows=len(rows))
            return True

    async def flush(self) -> None:
        """Wait for background pushes scheduled so far."""
        pending = list(self._save_tasks)
        if pending:
            await asyncio.gather(*pending)

    async def stop(self) -> None:
        """Stop polling and let pending pushes finish."""
        self.stop_polling()
        await self.flush()
