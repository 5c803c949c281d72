"""
PostgreSQL connectors (asyncpg).

``PostgresConnector`` serves the primary role used for store statistics.
``ReadOnlyPostgresConnector`` serves the SELECT-only role that runs
generated SQL; its session settings are fixed per physical connection:

    connector = ReadOnlyPostgresConnector(
        host="localhost",
        port=5432,
        database="shop",
        user="readonly",
        password="secret",
        statement_timeout_ms=5000,
    )

    async with connector:
        result = await connector.execute(
            "SELECT COUNT(*) AS n FROM orders WHERE store_id = $1",
            params=[store_id],
        )
"""

import time
from typing import Any

import asyncpg

from storechat.connectors.base import (
    BaseConnector,
    ConnectionError,
    QueryError,
    QueryResult,
)


class PostgresConnector(BaseConnector):
    """asyncpg pool for one PostgreSQL role."""

    def _server_settings(self) -> dict[str, str]:
        """Session settings sent with every new physical connection."""
        return {}

    def _pool_options(self) -> dict[str, Any]:
        options = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "min_size": self.pool_min_size,
            "max_size": self.pool_size,
            "command_timeout": self.timeout,
            **self.kwargs,
        }
        server_settings = self._server_settings()
        if server_settings:
            options["server_settings"] = server_settings
        return options

    async def connect(self) -> None:
        """
        Create the pool and check it with ``SELECT version()``.

        Raises:
            ConnectionError: If the pool cannot be created or the check fails
        """
        if self._connected and self._pool:
            return

        self.logger.info("Connecting to PostgreSQL", extra={"dsn": self.dsn_label})
        try:
            self._pool = await asyncpg.create_pool(**self._pool_options())
            async with self._pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
        except asyncpg.PostgresError as e:
            self.logger.error("PostgreSQL connection failed", extra={"dsn": self.dsn_label})
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except Exception as e:
            self.logger.error(
                "PostgreSQL connection error",
                extra={"dsn": self.dsn_label, "error_type": type(e).__name__},
            )
            raise ConnectionError(f"Connection error: {e}") from e

        self._connected = True
        self.logger.info(
            "Connected to PostgreSQL",
            extra={"dsn": self.dsn_label, "server_version": str(version).split(",")[0]},
        )

    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
        timeout: float | None = None,
    ) -> QueryResult:
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        limit_seconds = timeout or self.timeout
        started = time.perf_counter()
        try:
            async with self._pool.acquire() as conn:
                records = await conn.fetch(query, *(params or []), timeout=limit_seconds)
        except asyncpg.QueryCanceledError as e:
            # Raised when the server-side statement_timeout fires
            self.logger.warning("Statement cancelled by server", extra={"dsn": self.dsn_label})
            raise QueryError(f"Query timeout: {e}") from e
        except asyncpg.PostgresError as e:
            self.logger.warning(
                "Statement failed",
                extra={"dsn": self.dsn_label, "sqlstate": getattr(e, "sqlstate", None)},
            )
            raise QueryError(f"Query execution failed: {e}") from e
        except TimeoutError as e:
            self.logger.warning(
                "Statement abandoned after client timeout",
                extra={"dsn": self.dsn_label, "timeout_seconds": limit_seconds},
            )
            raise QueryError(f"Query timeout ({limit_seconds}s)") from e
        except Exception as e:
            self.logger.error(
                "Unexpected error during query execution",
                extra={"dsn": self.dsn_label, "error_type": type(e).__name__},
            )
            raise QueryError(f"Query error: {e}") from e

        rows = [dict(record) for record in records]
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.debug(
            "Statement executed",
            extra={"dsn": self.dsn_label, "row_count": len(rows), "duration_ms": elapsed_ms},
        )
        return QueryResult(
            rows=rows,
            row_count=len(rows),
            columns=list(rows[0].keys()) if rows else [],
            execution_time_ms=elapsed_ms,
        )

    async def close(self) -> None:
        """Close the pool; a no-op when there is none."""
        if self._pool is None:
            return

        pool, self._pool = self._pool, None
        self._connected = False
        try:
            await pool.close()
        except Exception as e:
            raise ConnectionError(f"Failed to close connection: {e}") from e
        self.logger.info("PostgreSQL pool closed", extra={"dsn": self.dsn_label})


class ReadOnlyPostgresConnector(PostgresConnector):
    """
    Connector for the SELECT-only role that runs generated SQL.

    ``statement_timeout`` and ``default_transaction_read_only`` go out as
    connection startup parameters, so they survive the session reset asyncpg
    performs when a connection returns to the pool.
    """

    def __init__(self, *args, statement_timeout_ms: int = 5000, **kwargs):
        self.statement_timeout_ms = statement_timeout_ms
        super().__init__(*args, **kwargs)

    def _server_settings(self) -> dict[str, str]:
        return {
            "statement_timeout": str(self.statement_timeout_ms),
            "default_transaction_read_only": "on",
        }
