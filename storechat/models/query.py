"""
Query Pipeline Models

Pydantic models for the values flowing through the NL→SQL pipeline:
question, store context, candidate/validated/generated query and the
execution result.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storechat.models.chart import ChartArtifact, ChartMeta, ChartSpec

TENANT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
MAX_QUESTION_LENGTH = 2000


def is_valid_tenant_id(tenant_id: Any) -> bool:
    """Check that a tenant id is a well-formed UUID string."""
    return isinstance(tenant_id, str) and bool(TENANT_ID_PATTERN.match(tenant_id))


class Question(BaseModel):
    """A tenant's free-text question (trimmed, non-empty, bounded length)."""

    tenant_id: str = Field(..., description="Authenticated store id (UUID)")
    text: str = Field(..., description="Trimmed question text")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls,
        tenant_id: Any,
        text: Any,
        max_length: int = MAX_QUESTION_LENGTH,
    ) -> "Question":
        """
        Validate raw input and build a Question.

        Raises:
            ValueError: With a user-presentable message when input is invalid
        """
        if not is_valid_tenant_id(tenant_id):
            raise ValueError("Invalid storeId: must be a valid UUID")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Question cannot be empty")
        trimmed = text.strip()
        if len(trimmed) > max_length:
            raise ValueError(f"Question too long: {len(trimmed)} chars (max {max_length})")
        return cls(tenant_id=tenant_id, text=trimmed)


class StoreContext(BaseModel):
    """Tenant-scoped store statistics used to ground the system prompt."""

    tenant_id: str
    currency: str = "USD"
    total_orders: int = 0
    total_products: int = 0
    total_customers: int = 0
    total_categories: int = 0
    earliest_order_date: str | None = None
    latest_order_date: str | None = None

    model_config = ConfigDict(frozen=True)


class CandidateQuery(BaseModel):
    """Model output: untrusted until it passes the SQL validator."""

    sql: str
    explanation: str
    chart_spec: ChartSpec | None = None


class ValidationResult(BaseModel):
    """Outcome of SQL validation with the sanitized, limit-bounded SQL."""

    valid: bool
    sql: str
    errors: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> "ValidationResult":
        if self.valid and self.errors:
            raise ValueError("A valid result cannot carry errors")
        return self


class GeneratedQuery(BaseModel):
    """Validated SQL plus bound parameters; params[0] is the tenant id."""

    sql: str
    params: list[str]
    explanation: str
    chart_spec: ChartSpec | None = None


class ExecutionResult(BaseModel):
    """Rows returned by the read-only executor."""

    rows: list[dict[str, Any]]
    row_count: int
    duration_ms: float
    truncated: bool = False

    @field_validator("row_count")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("row_count must be non-negative")
        return v


class PipelineAnswer(BaseModel):
    """Everything the caller receives for one answered question."""

    query: GeneratedQuery
    execution: ExecutionResult
    chart: ChartArtifact | None = None
    chart_meta: ChartMeta | None = None

    @property
    def answer(self) -> str:
        return self.query.explanation
