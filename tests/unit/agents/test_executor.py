"""
Unit tests for ExecutorAgent.

Tests execution, truncation and error classification with mocked connectors.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from storechat.agents.executor import ExecutorAgent, classify_error
from storechat.connectors import ConnectionError, QueryError, QueryResult
from storechat.models import (
    Err,
    ErrorKind,
    ExecutorAgentInput,
    GeneratedQuery,
    Ok,
)


def _result(rows):
    return QueryResult(
        rows=rows,
        row_count=len(rows),
        columns=list(rows[0].keys()) if rows else [],
        execution_time_ms=2.5,
    )


@pytest.fixture
def connector():
    mock = MagicMock()
    mock.execute = AsyncMock(return_value=_result([{"revenue": 100}]))
    return mock


@pytest.fixture
def executor_input(store_id):
    return ExecutorAgentInput(
        tenant_id=store_id,
        generated_query=GeneratedQuery(
            sql="SELECT SUM(total) AS revenue FROM orders WHERE store_id = $1 LIMIT 100",
            params=[store_id],
            explanation="Revenue",
        ),
    )


class TestExecutorAgent:
    """Test suite for ExecutorAgent."""

    @pytest.mark.asyncio
    async def test_successful_execution(self, connector, executor_input, store_id):
        result = await ExecutorAgent(connector)(executor_input)

        assert isinstance(result, Ok)
        assert result.value.rows == [{"revenue": 100}]
        assert result.value.row_count == 1
        assert result.value.truncated is False
        assert result.value.duration_ms >= 0
        connector.execute.assert_awaited_once_with(
            executor_input.generated_query.sql, params=[store_id]
        )

    @pytest.mark.asyncio
    async def test_truncates_to_max_rows(self, connector, executor_input):
        connector.execute.return_value = _result([{"n": i} for i in range(15)])

        result = await ExecutorAgent(connector, max_rows=10)(executor_input)

        assert result.value.row_count == 10
        assert len(result.value.rows) == 10
        assert result.value.truncated is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "returned,kept,truncated",
        [
            (0, 0, False),
            (9, 9, False),
            (10, 10, False),
            (11, 10, True),
        ],
    )
    async def test_truncation_boundary(
        self, connector, executor_input, returned, kept, truncated
    ):
        connector.execute.return_value = _result([{"n": i} for i in range(returned)])

        result = await ExecutorAgent(connector, max_rows=10)(executor_input)

        assert isinstance(result, Ok)
        assert result.value.row_count == kept
        assert [row["n"] for row in result.value.rows] == list(range(kept))
        assert result.value.truncated is truncated

    @pytest.mark.asyncio
    async def test_rows_are_not_logged(self, connector, executor_input, caplog):
        connector.execute.return_value = _result([{"secret_name": "Alice Example"}])

        await ExecutorAgent(connector)(executor_input)

        assert "Alice Example" not in caplog.text

    @pytest.mark.asyncio
    async def test_refuses_without_tenant_param(self, connector, executor_input):
        query = executor_input.generated_query.model_copy(update={"params": []})
        agent_input = executor_input.model_copy(update={"generated_query": query})

        result = await ExecutorAgent(connector)(agent_input)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.EXECUTION
        connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refuses_mismatched_tenant_param(self, connector, executor_input):
        query = executor_input.generated_query.model_copy(
            update={"params": ["6ba7b810-9dad-11d1-80b4-00c04fd430c8"]}
        )
        agent_input = executor_input.model_copy(update={"generated_query": query})

        result = await ExecutorAgent(connector)(agent_input)

        assert isinstance(result, Err)
        connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message, kind, user_message",
        [
            (
                "Query timeout: canceling statement due to statement timeout",
                ErrorKind.TIMEOUT,
                "The query took too long to execute. Try asking a simpler question.",
            ),
            (
                "Query execution failed: permission denied for table orders",
                ErrorKind.PERMISSION,
                "Query execution failed due to a permissions error.",
            ),
            (
                'Query execution failed: syntax error at or near "FORM"',
                ErrorKind.SYNTAX,
                "The generated query contained a syntax error. "
                "Please try rephrasing your question.",
            ),
            (
                'Query execution failed: column "foo" does not exist',
                ErrorKind.EXECUTION,
                "Query execution failed unexpectedly.",
            ),
        ],
    )
    async def test_error_classification(
        self, connector, executor_input, message, kind, user_message
    ):
        connector.execute.side_effect = QueryError(message)

        result = await ExecutorAgent(connector)(executor_input)

        assert isinstance(result, Err)
        assert result.kind is kind
        assert result.user_message == user_message
        assert "orders" not in result.user_message

    @pytest.mark.asyncio
    async def test_connection_error_is_execution_err(self, connector, executor_input):
        connector.execute.side_effect = ConnectionError("Not connected to database")

        result = await ExecutorAgent(connector)(executor_input)

        assert result.kind is ErrorKind.EXECUTION

    @pytest.mark.asyncio
    async def test_client_side_timeout(self, connector, executor_input):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        connector.execute = AsyncMock(side_effect=slow)

        result = await ExecutorAgent(connector, timeout_seconds=0.01)(executor_input)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.TIMEOUT


class TestClassifyError:
    def test_statement_timeout(self):
        assert classify_error("ERROR: statement timeout") is ErrorKind.TIMEOUT

    def test_case_insensitive(self):
        assert classify_error("PERMISSION DENIED for relation x") is ErrorKind.PERMISSION
