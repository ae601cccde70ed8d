"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require Supabase credentials at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator, Optional

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

    def __init__(self, client: "MockSupabaseClient", table: str, data: list = None):
        self._client = client
        self._table = table
        self._data = data or []
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        rows = []
        for item in data:
            row = dict(item)
            row["id"] = self._client.next_id()
            row["created_at"] = datetime.now(timezone.utc).isoformat()
            rows.append(row)
        self._client.inserted.setdefault(self._table, []).extend(rows)
        self._data = rows
        return self

    def update(self, data):
        # Simulate update - merge with existing rows, narrowed by eq()
        self._data = [{**item, **data} for item in self._data]
        self._client.updated.setdefault(self._table, []).append(dict(data))
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def in_(self, column, values):
        self._data = [row for row in self._data if row.get(column) in values]
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        self._data = sorted(self._data, key=lambda row: str(row.get(column) or ""))
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        error = self._client.errors.get(self._table)
        if error is not None:
            raise error
        if self._is_single:
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(data=data, count=1 if data else 0)
        return MockSupabaseResponse(data=self._data)


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, client: "MockSupabaseClient", name: str, data: list = None):
        self._client = client
        self._name = name
        self._data = data or []

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._client, self._name, [dict(r) for r in self._data])

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        return self._query().update(data)


class MockSupabaseClient:
    """
    Mock Supabase client.

    Records inserts and updates per table; set_table_error makes every
    query on a table raise.
    """

    def __init__(self):
        self._tables = {}
        self._id_counter = 0
        self.errors: dict[str, Exception] = {}
        self.inserted: dict[str, list] = {}
        self.updated: dict[str, list] = {}
        self.table_calls: dict[str, int] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = data

    def set_table_error(self, table_name: str, error: Optional[Exception]):
        """Make queries on a table raise (None clears)."""
        if error is None:
            self.errors.pop(table_name, None)
        else:
            self.errors[table_name] = error

    def next_id(self) -> str:
        self._id_counter += 1
        return f"switch-uuid-{self._id_counter}"

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        self.table_calls[name] = self.table_calls.get(name, 0) + 1
        return MockSupabaseTable(self, name, self._tables.get(name, []))


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("switches", [
                {"id": "1", "name": "Gateron Yellow", "user_id": "user-1"}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("switches", [...])
            # Now any service using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.switch_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.manufacturer_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase


@pytest.fixture
def owner_id() -> str:
    return "user-1"


@pytest.fixture
def sample_manufacturers() -> list:
    """Verified manufacturers as stored."""
    return [
        {"id": "m-1", "name": "Gateron", "aliases": ["GTR"], "verified": True},
        {"id": "m-2", "name": "Cherry", "aliases": ["Cherry MX", "ZF"], "verified": True},
        {"id": "m-3", "name": "Kailh", "aliases": ["Kaihua"], "verified": True},
        {"id": "m-4", "name": "JWK", "aliases": ["Durock"], "verified": True},
        {"id": "m-5", "name": "Outemu", "aliases": [], "verified": True},
        {"id": "m-6", "name": "Unverified Co", "aliases": [], "verified": False},
    ]


@pytest.fixture
def import_services(mock_db, mock_supabase, sample_manufacturers):
    """
    ImportSessionService wired to the mock database.

    Returns (session_service, mock_supabase).
    """
    from services.import_session_service import ImportSessionService
    from services.manufacturer_service import ManufacturerService
    from services.switch_service import SwitchService

    mock_supabase.set_table_data("manufacturers", sample_manufacturers)
    service = ImportSessionService(
        switch_service=SwitchService(),
        manufacturer_service=ManufacturerService()
    )
    return service, mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(import_services):
    """
    Create FastAPI test client with mocked services.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("switches", [...])
            response = test_client_with_mock_db.get("/api/imports/template")
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.export_service import ExportService

    session_service, _ = import_services
    export_service = ExportService(switch_service=session_service.switches)

    with patch("routes.imports.get_import_session_service", return_value=session_service):
        with patch("services.import_session_service.get_import_session_service", return_value=session_service):
            with patch("routes.switches.get_export_service", return_value=export_service):
                yield TestClient(app)
