"""
Pipeline Result Types

Tagged result values passed between pipeline stages. Every stage returns
either ``Ok(value)`` or ``Err(kind, detail)``; the pipeline short-circuits on
the first ``Err`` and only the outermost boundary turns it into user-facing
text (or a ``PipelineError``).

Usage:
    result = await agent(input)
    if isinstance(result, Err):
        return result
    value = result.value
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

GENERIC_FAILURE_MESSAGE = "Unable to process this question. Please try rephrasing."


class ErrorKind(str, Enum):
    """Classification of pipeline failures."""

    INPUT = "input"
    CONTEXT = "context"
    GENERATION = "generation"
    SAFETY = "safety"
    TIMEOUT = "timeout"
    PERMISSION = "permission"
    SYNTAX = "syntax"
    EXECUTION = "execution"
    INTERNAL = "internal"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.CONTEXT: GENERIC_FAILURE_MESSAGE,
    ErrorKind.GENERATION: GENERIC_FAILURE_MESSAGE,
    ErrorKind.SAFETY: GENERIC_FAILURE_MESSAGE,
    ErrorKind.INTERNAL: GENERIC_FAILURE_MESSAGE,
    ErrorKind.TIMEOUT: "The query took too long to execute. Try asking a simpler question.",
    ErrorKind.PERMISSION: "Query execution failed due to a permissions error.",
    ErrorKind.SYNTAX: (
        "The generated query contained a syntax error. Please try rephrasing your question."
    ),
    ErrorKind.EXECUTION: "Query execution failed unexpectedly.",
}


class PipelineError(Exception):
    """
    Raised at the outermost boundary when a pipeline result is an ``Err``.

    Only carries the user-safe message; internal detail stays in the logs.

    Attributes:
        kind: Error classification
        message: User-safe message
    """

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {"code": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage result."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """
    Failed stage result.

    Attributes:
        kind: Error classification, decides the user-facing message
        detail: Internal description for logs (never shown to users,
            except for input errors which describe the user's own input)
        stage: Name of the stage that failed
        context: Extra structured data for logging
    """

    kind: ErrorKind
    detail: str
    stage: str | None = None
    context: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def user_message(self) -> str:
        if self.kind is ErrorKind.INPUT:
            return self.detail
        return USER_MESSAGES[self.kind]

    def with_stage(self, stage: str) -> "Err":
        """Return a copy tagged with ``stage`` unless one is already set."""
        if self.stage:
            return self
        return Err(kind=self.kind, detail=self.detail, stage=stage, context=self.context)

    def unwrap(self) -> Any:
        raise PipelineError(self.kind, self.user_message)

    def to_log_extra(self) -> dict[str, Any]:
        """Structured fields for logging."""
        extra: dict[str, Any] = {
            "stage": self.stage,
            "error_kind": self.kind.value,
            "error": self.detail,
        }
        if self.context:
            extra.update(self.context)
        return extra


Result = Union[Ok[T], Err]
