"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from typing import Generator

from config.settings import Settings
from models.catalog import CatalogRow
from services.local_cache import LocalCache
from services.remote_store import InMemoryRemoteStore
from services.sync_engine import SyncEngine
from tests.factories import CatalogRowFactory


# ===================
# CLOCK
# ===================

class FakeClock:
    """Settable epoch-millisecond clock for stores."""

    def __init__(self, now: int = 100):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def set(self, now: int) -> None:
        self.now = now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._filters: list[tuple[str, object]] = []
        self._limit = None
        self._upsert = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def upsert(self, record, on_conflict=None):
        self._upsert = (record, on_conflict or "id")
        return self

    def execute(self) -> MockSupabaseResponse:
        self._table.client.calls.append(self._table.name)
        if self._table.client.fail:
            raise RuntimeError("connection refused")

        if self._upsert is not None:
            record, key = self._upsert
            rows = [r for r in self._table.rows if r.get(key) != record.get(key)]
            rows.append(dict(record))
            self._table.rows = rows
            return MockSupabaseResponse(data=[record])

        data = [
            r for r in self._table.rows
            if all(r.get(col) == val for col, val in self._filters)
        ]
        if self._limit is not None:
            data = data[:self._limit]
        return MockSupabaseResponse(data=data)


class MockSupabaseTable:
    """Mock Supabase table keeping rows in memory."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name
        self.rows: list[dict] = []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def upsert(self, record, on_conflict=None):
        return MockSupabaseQuery(self).upsert(record, on_conflict=on_conflict)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self.fail = False
        self.calls: list[str] = []

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self.table(table_name).rows = list(data)

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(self, name)
        return self._tables[name]


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("upc_sync_data", [
                {"id": 1, "data": {...}}
            ])
    """
    return MockSupabaseClient()


# ===================
# CATALOG DATA
# ===================

@pytest.fixture
def sample_rows() -> list[CatalogRow]:
    """
    Small catalog covering every visibility rule.

    - classic-tee / TEE-S     needs UPC
    - classic-tee / TEE-M     has UPC
    - classic-tee-copy / ...  test product
    - gift-card / ""          no SKU (has barcode)
    - mug / MUG-01            needs UPC
    """
    return [
        CatalogRowFactory.create(handle="classic-tee", sku="TEE-S", title="Classic Tee"),
        CatalogRowFactory.create(handle="classic-tee", sku="TEE-M", barcode="012345678905", title=""),
        CatalogRowFactory.create(handle="classic-tee-copy", sku="TEE-S-COPY", title="Classic Tee (Copy)"),
        CatalogRowFactory.create(handle="gift-card", sku="", barcode="999999999999", title="Gift Card"),
        CatalogRowFactory.create(handle="mug", sku="MUG-01", title="Mug"),
    ]


# ===================
# SYNC COMPONENTS
# ===================

@pytest.fixture
def cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / "cache" / "catalog.json")


@pytest.fixture
def memory_store(clock) -> InMemoryRemoteStore:
    return InMemoryRemoteStore(clock=clock)


@pytest.fixture
def make_engine(tmp_path, memory_store):
    """
    Build engines sharing one store, each with its own cache file.

    Usage:
        a = make_engine("a")
        b = make_engine("b")
    """
    engines: list[SyncEngine] = []

    def _make(name: str = "client", store=None, poll_interval: float = 5.0) -> SyncEngine:
        engine = SyncEngine(
            store=store or memory_store,
            cache=LocalCache(tmp_path / name / "catalog.json"),
            poll_interval=poll_interval,
        )
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        if engine.is_polling:
            engine.stop_polling()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        sync_backend="memory",
        local_cache_path=str(tmp_path / "app" / "catalog.json"),
        poll_interval_seconds=60,
        dashboard_password=None,
        seed_csv_path=None,
    )


@pytest.fixture
def test_client(app_settings, memory_store) -> Generator:
    """
    FastAPI test client running the full lifespan on an in-memory store.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/sync")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import create_app

    app = create_app(settings=app_settings, engine_store=memory_store)
    with TestClient(app) as client:
        yield client
