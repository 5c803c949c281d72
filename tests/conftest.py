"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging

import pytest

from storechat.config import clear_settings_cache
from storechat.connectors import BaseConnector, QueryResult
from storechat.models import StoreContext

STORE_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_STORE_ID = "6ba7b810-9dad-11d1-80b4-00c04fd430c8"


# ============================================================================
# Logging / Settings
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture all log records for every test."""
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep tests independent of any local .env file and cached settings."""
    monkeypatch.setenv("STORECHAT_ENV_SOURCE", "environment")
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Shared Fixtures
# ============================================================================


class FakeConnector(BaseConnector):
    """In-memory connector returning canned rows per query fragment."""

    def __init__(self, responses: dict[str, list[dict]] | None = None, error: Exception | None = None):
        super().__init__(
            host="localhost", port=5432, database="test", user="test", password="test"
        )
        self.responses = responses or {}
        self.error = error
        self.calls: list[tuple[str, list]] = []

    async def connect(self) -> None:
        self._connected = True

    async def execute(self, query, params=None, timeout=None) -> QueryResult:
        self.calls.append((query, list(params or [])))
        if self.error is not None:
            raise self.error
        rows = next(
            (rows for fragment, rows in self.responses.items() if fragment in query), []
        )
        return QueryResult(
            rows=rows,
            row_count=len(rows),
            columns=list(rows[0].keys()) if rows else [],
            execution_time_ms=1.0,
        )

    async def close(self) -> None:
        self._connected = False


@pytest.fixture
def store_id():
    return STORE_ID


@pytest.fixture
def store_context():
    """Store context for a store with order history."""
    return StoreContext(
        tenant_id=STORE_ID,
        currency="EUR",
        total_orders=120,
        total_products=45,
        total_customers=80,
        total_categories=6,
        earliest_order_date="2024-01-03T10:00:00+00:00",
        latest_order_date="2024-06-30T18:30:00+00:00",
    )


@pytest.fixture
def fake_connector_cls():
    return FakeConnector
