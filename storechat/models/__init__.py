"""
StoreChat Models Module

Pydantic models and result types used throughout the pipeline.

Available Models:
    Query Models:
        - Question: Validated tenant question
        - StoreContext: Store statistics for prompt grounding
        - CandidateQuery: Untrusted model output
        - ValidationResult: SQL validator outcome
        - GeneratedQuery: Validated SQL with bound parameters
        - ExecutionResult: Rows returned by the executor
        - PipelineAnswer: Combined answer for callers

    Chart Models:
        - ChartSpec: Model-chosen chart descriptor
        - ChartMeta: Keys for chart type switching
        - ChartConfiguration / TableResult: Renderable artifacts

    Results:
        - Ok / Err / Result: Tagged stage results
        - ErrorKind: Failure classification
        - PipelineError: Raised at the outermost boundary

Usage:
    from storechat.models import Question, Ok, Err
"""

from storechat.models.agent import (
    AgentInput,
    ContextAgentInput,
    ExecutorAgentInput,
    SQLAgentInput,
    ValidatorAgentInput,
)
from storechat.models.chart import (
    CHART_TYPES,
    ChartArtifact,
    ChartConfiguration,
    ChartMeta,
    ChartSpec,
    ChartType,
    TableResult,
)
from storechat.models.query import (
    MAX_QUESTION_LENGTH,
    CandidateQuery,
    ExecutionResult,
    GeneratedQuery,
    PipelineAnswer,
    Question,
    StoreContext,
    ValidationResult,
    is_valid_tenant_id,
)
from storechat.models.result import (
    GENERIC_FAILURE_MESSAGE,
    Err,
    ErrorKind,
    Ok,
    PipelineError,
    Result,
)

__all__ = [
    # Agent inputs
    "AgentInput",
    "ContextAgentInput",
    "ExecutorAgentInput",
    "SQLAgentInput",
    "ValidatorAgentInput",
    # Chart models
    "CHART_TYPES",
    "ChartArtifact",
    "ChartConfiguration",
    "ChartMeta",
    "ChartSpec",
    "ChartType",
    "TableResult",
    # Query models
    "MAX_QUESTION_LENGTH",
    "CandidateQuery",
    "ExecutionResult",
    "GeneratedQuery",
    "PipelineAnswer",
    "Question",
    "StoreContext",
    "ValidationResult",
    "is_valid_tenant_id",
    # Results
    "GENERIC_FAILURE_MESSAGE",
    "Err",
    "ErrorKind",
    "Ok",
    "PipelineError",
    "Result",
]
