"""
Database Connectors

Async PostgreSQL connectors built on asyncpg.

Available Connectors:
    - PostgresConnector: Primary role (store statistics)
    - ReadOnlyPostgresConnector: SELECT-only role for generated SQL

Usage:
    from storechat.connectors import create_connector

    connector = create_connector(database_url=url, read_only=True)
"""

from storechat.connectors.base import (
    BaseConnector,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
)
from storechat.connectors.factory import create_connector
from storechat.connectors.postgres import PostgresConnector, ReadOnlyPostgresConnector

__all__ = [
    "BaseConnector",
    "ConnectionError",
    "ConnectorError",
    "QueryError",
    "QueryResult",
    "create_connector",
    "PostgresConnector",
    "ReadOnlyPostgresConnector",
]
