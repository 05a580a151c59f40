"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time; give them something to load
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("OTP_CLEANUP_ENABLED", "false")

import pytest
from datetime import datetime, timezone
from typing import Generator

from tests.factories import FormSchemaFactory, FormFieldFactory


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockAPIError(Exception):
    """Stands in for postgrest's APIError."""
    pass


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else (
            len(self.data) if isinstance(self.data, list) else 1
        )


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Filters, ordering and limits are applied to the table's rows, so tests
    can rely on eq() actually narrowing results.
    """

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str = "select", payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._order = []
        self._limit = None
        self._range = None
        self._is_single = False

    # Chaining after insert/update/delete (e.g. .insert(...).select())
    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def lt(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) < value)
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def single(self):
        self._is_single = True
        return self

    def _matching(self, rows: list) -> list:
        return [row for row in rows if all(f(row) for f in self._filters)]

    def _shape(self, rows: list) -> list:
        for column, desc in reversed(self._order):
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self._range:
            rows = rows[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        return rows

    def execute(self) -> MockSupabaseResponse:
        self._client.executed.append((self._table, self._operation))

        failure = self._client._failures.get((self._table, self._operation))
        if failure:
            raise MockAPIError(failure)

        table = self._client._table_rows(self._table)

        if self._operation == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            stored = []
            for item in items:
                row = dict(item)
                row.setdefault("id", f"test-uuid-{self._client._next_id()}")
                row.setdefault("created_at", _now())
                row.setdefault("updated_at", _now())
                stored.append(row)
            table.extend(stored)
            self._client.inserted.setdefault(self._table, []).append(stored)
            return MockSupabaseResponse(data=stored)

        matched = self._matching(table)

        if self._operation == "update":
            for row in matched:
                row.update(self._payload)
            return MockSupabaseResponse(data=matched)

        if self._operation == "delete":
            for row in matched:
                table.remove(row)
            return MockSupabaseResponse(data=matched)

        rows = self._shape(matched)
        count = self._client._counts.get(self._table)
        if self._is_single:
            return MockSupabaseResponse(data=rows[0] if rows else None, count=1 if rows else 0)
        return MockSupabaseResponse(data=rows, count=count if count is not None else len(matched))


class MockSupabaseTable:
    """Mock Supabase table entry point."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """
    Mock Supabase client.

    Attributes:
        executed: (table, operation) for every executed query, in order
        inserted: table -> list of inserted batches
    """

    def __init__(self):
        self._tables: dict[str, list] = {}
        self._counts: dict[str, int] = {}
        self._failures: dict[tuple, str] = {}
        self._id_counter = 0
        self.executed: list[tuple[str, str]] = []
        self.inserted: dict[str, list[list[dict]]] = {}

    def _next_id(self) -> int:
        self._id_counter += 1
        return self._id_counter

    def _table_rows(self, name: str) -> list:
        return self._tables.setdefault(name, [])

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = [dict(row) for row in data]
        if count is not None:
            self._counts[table_name] = count

    def get_table_data(self, table_name: str) -> list:
        return self._tables.get(table_name, [])

    def fail(self, table_name: str, operation: str, message: str = "database unavailable"):
        """Make every execute() of operation on table raise."""
        self._failures[(table_name, operation)] = message

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("form_schemas", [
                {"id": "1", "sme_id": "sme-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def sme_id() -> str:
    return "sme-123"


@pytest.fixture
def order_schema(sme_id) -> dict:
    """A form schema owned by sme_id."""
    return FormSchemaFactory.create(id="schema-123", sme_id=sme_id, name="Delivery orders")


@pytest.fixture
def order_fields(order_schema) -> list:
    """Fields of order_schema, in field_order."""
    schema_id = order_schema["id"]
    return [
        FormFieldFactory.create(schema_id=schema_id, field_key="customer_name", label="Name", field_order=0),
        FormFieldFactory.create(schema_id=schema_id, field_key="customer_phone", label="Phone", type="phone", field_order=1),
        FormFieldFactory.create(schema_id=schema_id, field_key="delivery_address", label="Address", field_order=2),
        FormFieldFactory.create(schema_id=schema_id, field_key="cake_flavour", label="Flavour", required=False, field_order=3),
    ]


@pytest.fixture
def seeded_supabase(mock_supabase, order_schema, order_fields) -> MockSupabaseClient:
    """Mock client holding order_schema and its fields."""
    mock_supabase.set_table_data("form_schemas", [order_schema])
    mock_supabase.set_table_data("form_fields", order_fields)
    return mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(seeded_supabase) -> Generator:
    """
    FastAPI test client with every service bound to the mock client.

    Usage:
        def test_endpoint(test_client, seeded_supabase):
            response = test_client.post("/api/csv-mapper", json={...}, headers={"x-sme-id": "sme-123"})
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.csv_import_service import CSVImportService, get_csv_import_service
    from services.form_schema_service import FormSchemaService, get_form_schema_service
    from services.whatsapp_log_service import WhatsAppLogService, get_whatsapp_log_service

    app.dependency_overrides[get_csv_import_service] = lambda: CSVImportService(seeded_supabase)
    app.dependency_overrides[get_form_schema_service] = lambda: FormSchemaService(seeded_supabase)
    app.dependency_overrides[get_whatsapp_log_service] = lambda: WhatsAppLogService(seeded_supabase)

    yield TestClient(app)

    app.dependency_overrides.clear()
