"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from typing import Generator, Optional

from models.exercise import AliasMatch, AliasMatchSource
from services.exercise_catalog_service import StaticExerciseCatalog, DEFAULT_EXERCISES
from services.mapping_storage import InMemoryStorage
from services.mapping_store import MappingStore
from services.exercise_mapping_service import ExerciseMappingService
from utils.text_utils import normalize_for_matching

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

    Operates on the table's shared row list, so writes are visible to
    later reads.
    """

    def __init__(self, table: "MockSupabaseTable", operation: str, payload=None, on_conflict: str = None):
        self._table = table
        self._operation = operation
        self._payload = payload
        self._on_conflict = on_conflict
        self._filters: list[tuple[str, object]] = []

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.error:
            raise self._table.error

        rows = self._table.rows

        if self._operation == "upsert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            key = self._on_conflict or "id"
            for item in items:
                existing = next((r for r in rows if r.get(key) == item.get(key)), None)
                if existing is not None:
                    existing.update(item)
                else:
                    rows.append(dict(item))
            return MockSupabaseResponse(data=items)

        if self._operation == "delete":
            removed = [r for r in rows if self._matches(r)]
            self._table.rows[:] = [r for r in rows if not self._matches(r)]
            return MockSupabaseResponse(data=removed)

        return MockSupabaseResponse(data=[dict(r) for r in rows if self._matches(r)])


class MockSupabaseTable:
    """Mock Supabase table backed by a list of row dicts."""

    def __init__(self, rows: list = None):
        self.rows = rows if rows is not None else []
        self.error: Optional[Exception] = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def upsert(self, data, on_conflict: str = None, **kwargs):
        return MockSupabaseQuery(self, "upsert", payload=data, on_conflict=on_conflict)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock rows for a table."""
        self._tables[table_name] = MockSupabaseTable(list(data))

    def fail_table(self, table_name: str, error: Exception):
        """Make every query on the table raise error."""
        self.table(table_name).error = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FAKE SIMILARITY MATCHER
# ===================

class FakeAliasMatcher:
    """
    Deterministic stand-in for the alias matcher.

    Usage:
        matcher = FakeAliasMatcher({"bench": ("bench-press", 1.0)})
    """

    def __init__(self, matches: dict[str, tuple[str, float]] = None, error: Exception = None):
        self.matches = {normalize_for_matching(k): v for k, v in (matches or {}).items()}
        self.error = error
        self.calls: list[str] = []

    def best_alias_match(self, text: str) -> Optional[AliasMatch]:
        self.calls.append(text)
        if self.error:
            raise self.error

        hit = self.matches.get(normalize_for_matching(text))
        if hit is None:
            return None

        catalog_id, score = hit
        return AliasMatch(
            catalog_id=catalog_id,
            alias=text.strip().lower(),
            matched_by=AliasMatchSource.ALIAS if score >= 1.0 else AliasMatchSource.FUZZY,
            score=score,
        )


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("exercise_mapping_state", [
                {"key": "exercise_user_mappings", "value": [...]}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("config.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def catalog() -> StaticExerciseCatalog:
    """Default exercise catalog."""
    return StaticExerciseCatalog.from_dicts(DEFAULT_EXERCISES)


@pytest.fixture
def matcher() -> FakeAliasMatcher:
    """Matcher that knows a handful of spellings."""
    return FakeAliasMatcher({
        "bench": ("bench-press", 1.0),
        "bench press": ("bench-press", 1.0),
        "benchpress": ("bench-press", 0.88),
        "bnch prss": ("bench-press", 0.8),
        "squats": ("squat", 0.95),
        "pushups": ("push-up", 0.75),
        "plank hold": ("plank", 0.6),
    })


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage) -> MappingStore:
    return MappingStore(storage)


@pytest.fixture
def service(store, catalog, matcher) -> ExerciseMappingService:
    """Fresh mapping service over in-memory storage."""
    return ExerciseMappingService(store=store, catalog=catalog, matcher=matcher)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(service):
    """
    Create FastAPI test client wired to the in-memory service.

    Usage:
        def test_endpoint(test_client):
            response = test_client.post("/api/exercise-mapping/resolve", json={"query": "bench"})
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.exercise_mapping_service import get_exercise_mapping_service

    app.dependency_overrides[get_exercise_mapping_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
