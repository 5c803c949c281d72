"""
SQLAgent: natural language question to candidate SQL.

Builds the system prompt from store context, asks the completion client
for a JSON object and parses it strictly. Anything that does not match the
expected shape fails closed.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from storechat.agents.base import BaseAgent
from storechat.llm import CompletionClient
from storechat.models import (
    CandidateQuery,
    ChartSpec,
    Err,
    ErrorKind,
    Ok,
    Result,
    SQLAgentInput,
)
from storechat.prompts import build_system_prompt

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class ResponseParseError(ValueError):
    """Model output does not match the expected JSON shape."""


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_chart_spec(raw: Any) -> ChartSpec | None:
    """Validate a chart descriptor; anything malformed is dropped."""
    if not isinstance(raw, dict):
        return None
    try:
        return ChartSpec.model_validate(raw)
    except PydanticValidationError:
        return None


def parse_model_response(raw: str) -> CandidateQuery:
    """
    Parse raw completion text into a CandidateQuery.

    Raises:
        ResponseParseError: If the text is not a JSON object with non-empty
            string ``sql`` and string ``explanation``
    """
    cleaned = strip_code_fences(raw)

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            "Failed to parse AI response as JSON. The AI returned invalid output."
        ) from e

    if not isinstance(payload, dict):
        raise ResponseParseError("AI response is not a valid JSON object")

    sql = payload.get("sql")
    if not isinstance(sql, str) or not sql.strip():
        raise ResponseParseError('AI response missing required "sql" field')

    explanation = payload.get("explanation")
    if not isinstance(explanation, str):
        raise ResponseParseError('AI response missing required "explanation" field')

    return CandidateQuery(
        sql=sql.strip(),
        explanation=explanation,
        chart_spec=parse_chart_spec(payload.get("chartSpec")),
    )


class SQLAgent(BaseAgent):
    """Generates candidate SQL for a question via the completion client."""

    def __init__(
        self,
        completion_client: CompletionClient,
        default_limit: int = 100,
        tenant_column: str = "store_id",
        logger: logging.Logger | None = None,
    ):
        super().__init__(name="SQLAgent", logger=logger)
        self.completion_client = completion_client
        self.default_limit = default_limit
        self.tenant_column = tenant_column

    async def execute(self, input: SQLAgentInput) -> Result[CandidateQuery]:
        system_prompt = build_system_prompt(
            input.store_context,
            tenant_column=self.tenant_column,
            default_limit=self.default_limit,
        )

        completion = await self.completion_client.complete(system_prompt, input.question.text)
        if isinstance(completion, Err):
            return completion

        try:
            candidate = parse_model_response(completion.value)
        except ResponseParseError as e:
            return Err(
                kind=ErrorKind.GENERATION,
                detail=str(e),
                context={"response_length": len(completion.value)},
            )

        self.logger.info(
            "Candidate SQL generated",
            extra={
                "tenant_id": input.tenant_id,
                "sql_length": len(candidate.sql),
                "chart_type": candidate.chart_spec.type if candidate.chart_spec else None,
            },
        )
        return Ok(candidate)
