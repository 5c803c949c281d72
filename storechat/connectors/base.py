"""
Connector interface.

The pipeline talks to PostgreSQL through two connectors: the primary role
for store statistics and a SELECT-only role for generated SQL. Both share
this async interface so agents can be tested against an in-memory fake.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    """Rows returned by one statement, as plain dicts keyed by column name."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows")
    row_count: int = Field(..., ge=0, description="len(rows)")
    columns: list[str] = Field(..., description="Column names in select order")
    execution_time_ms: float = Field(..., description="Wall-clock time inside the connector")


class ConnectorError(Exception):
    """Any failure raised by a connector."""


class ConnectionError(ConnectorError):
    """Pool could not be created, closed or used."""


class QueryError(ConnectorError):
    """A statement failed or was cancelled; the message keeps the driver text."""


class BaseConnector(ABC):
    """
    Pooled async connection to one database role.

    Subclasses own the pool in ``self._pool`` and flip ``self._connected``.
    ``connect`` and ``close`` are idempotent, and the connector is an async
    context manager:

        async with connector:
            result = await connector.execute(sql, params=[store_id])
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        pool_min_size: int = 1,
        pool_size: int = 5,
        timeout: int = 30,
        logger: logging.Logger | None = None,
        **kwargs,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_min_size = pool_min_size
        self.pool_size = pool_size
        self.timeout = timeout
        self.kwargs = kwargs
        self.logger = logger or logging.getLogger(type(self).__module__)

        self._pool = None
        self._connected = False

    @property
    def dsn_label(self) -> str:
        """``user@host:port/database`` without the password, for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    async def connect(self) -> None:
        """Create the pool. Raises ConnectionError."""

    @abstractmethod
    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
        timeout: float | None = None,
    ) -> QueryResult:
        """
        Run one parameterised statement.

        Args:
            query: SQL with positional placeholders ($1, $2, ...)
            params: Values bound to the placeholders, in order
            timeout: Seconds before the call is abandoned (default: ``self.timeout``)

        Raises:
            ConnectionError: If the connector is not connected
            QueryError: If the statement fails, is cancelled or times out
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the pool."""

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"<{type(self).__name__} {self.dsn_label} ({state})>"
