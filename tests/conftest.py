"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and need the required Supabase values
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Generator, Optional, Sequence


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

    def __init__(self, table: "MockSupabaseTable", data: list = None, count: int = None):
        self._table = table
        self._data = data or []
        self._count = count

    def select(self, *args, **kwargs):
        return self

    def update(self, data):
        self._table.updates.append(data)
        self._data = [{**item, **data} for item in self._data] or [data]
        return self

    def eq(self, column, value):
        self._table.filters.append(("eq", column, value))
        return self

    def in_(self, column, values):
        self._table.filters.append(("in", column, list(values)))
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._table.fail_with is not None:
            raise self._table.fail_with
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses and call recording."""

    def __init__(self, data: list = None, count: int = None):
        self._data = data or []
        self._count = count
        self.filters: list[tuple] = []
        self.updates: list[dict] = []
        self.fail_with: Optional[Exception] = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, self._data.copy(), self._count)

    def update(self, data):
        query = MockSupabaseQuery(self, self._data.copy(), self._count)
        return query.update(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data, count)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table (same object on every call, so calls can be inspected)."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# IN-MEMORY STORES
# ===================

class InMemoryRecordStore:
    """
    RecordStore that keeps rows in dicts and records every call.

    Set fail_on_insert to a 1-based insert call number to make that call
    raise.
    fail_on_upsert is True for every table or a table name for just that
    one.
    """

    def __init__(self, tables: Optional[dict] = None):
        self.tables: dict[str, list[dict]] = {name: list(rows) for name, rows in (tables or {}).items()}
        self.calls: list[tuple] = []
        self.fail_on_insert: Optional[int] = None
        self.fail_on_delete = False
        self.fail_on_upsert = False
        self._insert_calls = 0

    def delete_partition(self, table: str, column: str, value: str) -> None:
        self.calls.append(("delete", table, column, value))
        if self.fail_on_delete:
            raise RuntimeError("permission denied")
        self.tables[table] = [row for row in self.tables.get(table, []) if row.get(column) != value]

    def insert_batch(self, table: str, rows: Sequence[dict]) -> int:
        self._insert_calls += 1
        self.calls.append(("insert", table, len(rows)))
        if self.fail_on_insert == self._insert_calls:
            raise RuntimeError("connection reset")
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)
        return len(rows)

    def upsert(self, table: str, rows: Sequence[dict], on_conflict: str) -> int:
        self.calls.append(("upsert", table, len(rows), on_conflict))
        if self.fail_on_upsert is True or self.fail_on_upsert == table:
            raise RuntimeError("duplicate key value")
        existing = {row[on_conflict]: row for row in self.tables.get(table, [])}
        for row in rows:
            existing[row[on_conflict]] = dict(row)
        self.tables[table] = list(existing.values())
        return len(rows)

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])


class InMemoryBlobStore:
    """
    BlobStore that keeps objects in a dict.

    failures maps a path prefix (e.g. "PROT-1/avaria") to how many uploads
    under it fail before one succeeds.
    """

    def __init__(self, failures: Optional[dict] = None, base_url: str = "https://cdn.test/fotos"):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.failures = dict(failures or {})
        self.attempts: list[str] = []
        self.base_url = base_url

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.attempts.append(path)
        for prefix, remaining in self.failures.items():
            if path.startswith(prefix) and remaining > 0:
                self.failures[prefix] = remaining - 1
                raise RuntimeError("storage unavailable")
        self.objects[path] = (data, content_type)
        return path

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("protocolos", [
                {"id": "1", "numero": "PROT-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("pdvs", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.sla_alert_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.sla_alert_service.get_admin_client", return_value=None):
                yield mock_supabase


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(mock_supabase):
    """
    Create FastAPI test client with the startup database check mocked.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("main.check_connection", return_value={"status": "healthy", "pdvs_count": 0, "produtos_count": 0}):
        yield TestClient(app)
