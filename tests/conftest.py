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
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Filters are applied to the configured rows in call order, so
    eq/gte/in_ narrow the data and order/range/limit shape it.
    Rows without the filtered column are kept.
    """

    def __init__(self, table_name: str, data: list = None, error: Exception = None, calls: list = None):
        self._table_name = table_name
        self._data = data or []
        self._error = error
        self._calls = calls if calls is not None else []

    def _record(self, method: str, *args):
        self._calls.append((self._table_name, method, args))

    def select(self, *args, **kwargs):
        self._record("select", *args)
        return self

    def eq(self, column, value):
        self._record("eq", column, value)
        self._data = [row for row in self._data if column not in row or row[column] == value]
        return self

    def gte(self, column, value):
        self._record("gte", column, value)
        self._data = [row for row in self._data if column not in row or row[column] >= value]
        return self

    def in_(self, column, values):
        self._record("in_", column, list(values))
        allowed = set(values)
        self._data = [row for row in self._data if column not in row or row[column] in allowed]
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._record("order", column, desc)
        self._data = sorted(self._data, key=lambda row: row.get(column) or 0, reverse=desc)
        return self

    def range(self, start, end):
        self._record("range", start, end)
        self._data = self._data[start:end + 1]
        return self

    def limit(self, count):
        self._record("limit", count)
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(data=[dict(row) for row in self._data])


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, name: str, data: list = None, error: Exception = None, calls: list = None):
        self._name = name
        self._data = data or []
        self._error = error
        self._calls = calls

    def select(self, *args, **kwargs):
        query = MockSupabaseQuery(self._name, list(self._data), self._error, self._calls)
        return query.select(*args, **kwargs)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self._errors = {}
        self.calls: list[tuple] = []

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = data

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise error."""
        self._errors[table_name] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(name, self._tables.get(name, []), self._errors.get(name), self.calls)

    def calls_for(self, table_name: str, method: str) -> list[tuple]:
        """Arguments of every recorded call of method on table_name."""
        return [args for table, called, args in self.calls if table == table_name and called == method]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("inv_family_codes", [
                {"id": "fc-1", "fc_code": "DRS01", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("inv_state_positions", [...])
            # Any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.growth_data_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/growth-simulator/defaults")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
