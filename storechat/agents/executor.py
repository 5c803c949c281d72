"""
ExecutorAgent: runs validated SQL on the read-only connection.

Rows are never logged. Failures are classified from the underlying error
text into timeout, permission, syntax or generic execution errors.
"""

import asyncio
import logging
import re
import time

from storechat.agents.base import BaseAgent
from storechat.connectors import BaseConnector, ConnectorError
from storechat.models import (
    Err,
    ErrorKind,
    ExecutionResult,
    ExecutorAgentInput,
    Ok,
    Result,
)

MAX_ROWS = 1000

_ERROR_PATTERNS: list[tuple[re.Pattern, ErrorKind]] = [
    (
        re.compile(
            r"canceling statement due to statement timeout|statement timeout|query timeout",
            re.IGNORECASE,
        ),
        ErrorKind.TIMEOUT,
    ),
    (re.compile(r"permission denied", re.IGNORECASE), ErrorKind.PERMISSION),
    (re.compile(r"syntax error", re.IGNORECASE), ErrorKind.SYNTAX),
]


def classify_error(message: str) -> ErrorKind:
    for pattern, kind in _ERROR_PATTERNS:
        if pattern.search(message):
            return kind
    return ErrorKind.EXECUTION


class ExecutorAgent(BaseAgent):
    """
    Executes a GeneratedQuery and bounds the result set.

    Attributes:
        connector: Read-only connector
        max_rows: Rows kept before truncation
        timeout_seconds: Client-side bound on one execution
    """

    def __init__(
        self,
        connector: BaseConnector,
        max_rows: int = MAX_ROWS,
        timeout_seconds: float = 10.0,
        logger: logging.Logger | None = None,
    ):
        super().__init__(name="ExecutorAgent", logger=logger)
        self.connector = connector
        self.max_rows = max_rows
        self.timeout_seconds = timeout_seconds

    async def execute(self, input: ExecutorAgentInput) -> Result[ExecutionResult]:
        query = input.generated_query

        if not query.sql.strip():
            return Err(kind=ErrorKind.EXECUTION, detail="Refusing to execute empty SQL")
        if not query.params or query.params[0] != input.tenant_id:
            return Err(
                kind=ErrorKind.EXECUTION,
                detail="Refusing to execute without the tenant id bound to $1",
            )

        self.logger.info(
            "Query executor: starting execution",
            extra={
                "tenant_id": input.tenant_id,
                "sql_length": len(query.sql),
                "param_count": len(query.params),
            },
        )

        start_time = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                self.connector.execute(query.sql, params=list(query.params)),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(
                "Query executor: execution timed out",
                extra={"tenant_id": input.tenant_id, "duration_ms": duration_ms},
            )
            return Err(
                kind=ErrorKind.TIMEOUT,
                detail=f"Query timeout ({self.timeout_seconds}s)",
                context={"duration_ms": duration_ms},
            )
        except ConnectorError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            kind = classify_error(str(e))
            self.logger.error(
                "Query executor: execution failed",
                extra={
                    "tenant_id": input.tenant_id,
                    "duration_ms": duration_ms,
                    "error_kind": kind.value,
                    "error": str(e),
                },
            )
            return Err(kind=kind, detail=str(e), context={"duration_ms": duration_ms})

        duration_ms = (time.perf_counter() - start_time) * 1000
        rows = result.rows
        truncated = len(rows) > self.max_rows
        if truncated:
            rows = rows[: self.max_rows]

        self.logger.info(
            "Query executor: execution completed",
            extra={
                "tenant_id": input.tenant_id,
                "duration_ms": duration_ms,
                "row_count": len(rows),
                "truncated": truncated,
            },
        )
        return Ok(
            ExecutionResult(
                rows=rows,
                row_count=len(rows),
                duration_ms=duration_ms,
                truncated=truncated,
            )
        )
