"""
Agent I/O Models

Pydantic input models for the pipeline agents. Every input carries the
authenticated tenant id so each stage can log with tenant context.
"""

from pydantic import BaseModel, ConfigDict, Field

from storechat.models.query import CandidateQuery, GeneratedQuery, Question, StoreContext


class AgentInput(BaseModel):
    """Base input model for all agents."""

    tenant_id: str = Field(..., description="Authenticated store id")

    model_config = ConfigDict(
        json_schema_extra={"example": {"tenant_id": "550e8400-e29b-41d4-a716-446655440000"}}
    )


class ContextAgentInput(AgentInput):
    """Input for ContextAgent (tenant id only)."""


class SQLAgentInput(AgentInput):
    """Input for SQLAgent: the question and grounding store context."""

    question: Question
    store_context: StoreContext


class ValidatorAgentInput(AgentInput):
    """Input for ValidatorAgent: the untrusted model output."""

    candidate: CandidateQuery
    tenant_placeholder_index: int = Field(default=1, ge=1)


class ExecutorAgentInput(AgentInput):
    """Input for ExecutorAgent: validated SQL with bound parameters."""

    generated_query: GeneratedQuery
