"""Connector factory for PostgreSQL database URLs."""

from __future__ import annotations

from urllib.parse import urlparse

from storechat.connectors.base import BaseConnector
from storechat.connectors.postgres import PostgresConnector, ReadOnlyPostgresConnector

_POSTGRES_SCHEMES = {"postgres", "postgresql"}


def create_connector(
    *,
    database_url: str,
    read_only: bool = False,
    pool_min_size: int = 1,
    pool_size: int = 5,
    timeout: int = 30,
    statement_timeout_ms: int = 5000,
    **kwargs,
) -> BaseConnector:
    """Create a PostgreSQL connector from a URL; ``read_only`` selects the SELECT-only variant."""
    parsed = _parse_url(database_url)
    if parsed.scheme.split("+")[0].lower() not in _POSTGRES_SCHEMES:
        raise ValueError(f"Unsupported database URL scheme: {parsed.scheme}")
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    common = dict(
        host=parsed.hostname,
        port=parsed.port or 5432,
        database=parsed.path.lstrip("/") or "postgres",
        user=parsed.username or "postgres",
        password=parsed.password or "",
        pool_min_size=pool_min_size,
        pool_size=pool_size,
        timeout=timeout,
        **kwargs,
    )
    if read_only:
        return ReadOnlyPostgresConnector(statement_timeout_ms=statement_timeout_ms, **common)
    return PostgresConnector(**common)


def _parse_url(database_url: str):
    normalized = database_url.replace("postgresql+asyncpg://", "postgresql://")
    return urlparse(normalized)
