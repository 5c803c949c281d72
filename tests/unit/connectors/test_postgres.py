"""
Unit tests for PostgresConnector.

Tests the PostgreSQL connectors with mocked asyncpg pools.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from storechat.connectors import (
    ConnectionError,
    PostgresConnector,
    QueryError,
    QueryResult,
    ReadOnlyPostgresConnector,
)


@pytest.fixture
def postgres_config():
    """PostgreSQL connection configuration."""
    return {
        "host": "localhost",
        "port": 5432,
        "database": "shop",
        "user": "readonly",
        "password": "secret",
        "pool_size": 5,
        "timeout": 30,
    }


@pytest.fixture
def mock_pool():
    """Mock asyncpg connection pool."""
    pool = AsyncMock()

    conn = AsyncMock()
    conn.fetchval = AsyncMock(return_value="PostgreSQL 16.2, compiled by gcc")
    conn.fetch = AsyncMock(return_value=[])

    pool.acquire = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    pool.close = AsyncMock()

    return pool, conn


class TestInitialization:
    """Test connector initialization."""

    def test_initialization(self, postgres_config):
        connector = PostgresConnector(**postgres_config)

        assert connector.host == "localhost"
        assert connector.database == "shop"
        assert connector.pool_size == 5
        assert connector.timeout == 30
        assert connector.is_connected is False

    def test_repr(self, postgres_config):
        repr_str = repr(PostgresConnector(**postgres_config))

        assert "PostgresConnector" in repr_str
        assert "readonly@localhost:5432/shop" in repr_str
        assert "disconnected" in repr_str


class TestConnection:
    """Test connection management."""

    @pytest.mark.asyncio
    async def test_connect_success(self, postgres_config, mock_pool):
        pool, conn = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

        assert connector.is_connected is True
        conn.fetchval.assert_awaited_once_with("SELECT version()")
        assert "server_settings" not in create_pool.call_args.kwargs
        assert create_pool.call_args.kwargs["max_size"] == 5

    @pytest.mark.asyncio
    async def test_connect_idempotent(self, postgres_config, mock_pool):
        pool, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            await connector.connect()

        assert create_pool.call_count == 1

    @pytest.mark.asyncio
    async def test_connect_failure(self, postgres_config):
        with patch(
            "asyncpg.create_pool",
            new=AsyncMock(side_effect=asyncpg.PostgresError("Connection refused")),
        ):
            connector = PostgresConnector(**postgres_config)

            with pytest.raises(ConnectionError, match="Failed to connect"):
                await connector.connect()

        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, postgres_config, mock_pool):
        pool, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            await connector.close()
            await connector.close()

        assert connector.is_connected is False
        pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_async_context_manager(self, postgres_config, mock_pool):
        pool, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            async with PostgresConnector(**postgres_config) as connector:
                assert connector.is_connected is True

        assert connector.is_connected is False


class TestReadOnlyConnector:
    """Test the SELECT-only connector variant."""

    @pytest.mark.asyncio
    async def test_server_settings(self, postgres_config, mock_pool):
        pool, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            connector = ReadOnlyPostgresConnector(
                **postgres_config, statement_timeout_ms=2500
            )
            await connector.connect()

        assert create_pool.call_args.kwargs["server_settings"] == {
            "statement_timeout": "2500",
            "default_transaction_read_only": "on",
        }

    def test_default_statement_timeout(self, postgres_config):
        connector = ReadOnlyPostgresConnector(**postgres_config)

        assert connector.statement_timeout_ms == 5000


class TestExecute:
    """Test query execution."""

    @pytest.mark.asyncio
    async def test_execute_not_connected(self, postgres_config):
        connector = PostgresConnector(**postgres_config)

        with pytest.raises(ConnectionError, match="Not connected"):
            await connector.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_execute_passes_params_and_timeout(self, postgres_config, mock_pool):
        pool, conn = mock_pool
        conn.fetch.return_value = [{"month": "2024-01", "revenue": 10}]

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            result = await connector.execute(
                "SELECT month, revenue FROM orders WHERE store_id = $1",
                params=["store-1"],
                timeout=5,
            )

        conn.fetch.assert_awaited_once_with(
            "SELECT month, revenue FROM orders WHERE store_id = $1", "store-1", timeout=5
        )
        assert isinstance(result, QueryResult)
        assert result.rows == [{"month": "2024-01", "revenue": 10}]
        assert result.row_count == 1
        assert result.columns == ["month", "revenue"]
        assert result.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_execute_empty_result(self, postgres_config, mock_pool):
        pool, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            result = await connector.execute("SELECT 1 WHERE false")

        assert result.rows == []
        assert result.columns == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, message",
        [
            (asyncpg.QueryCanceledError("canceling statement due to statement timeout"), "Query timeout"),
            (asyncpg.PostgresError("relation does not exist"), "Query execution failed"),
            (TimeoutError(), "Query timeout"),
            (RuntimeError("boom"), "Query error"),
        ],
    )
    async def test_execute_errors(self, postgres_config, mock_pool, error, message):
        pool, conn = mock_pool
        conn.fetch.side_effect = error

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(QueryError, match=message):
                await connector.execute("SELECT 1")
