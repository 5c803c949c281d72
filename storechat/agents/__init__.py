"""
Pipeline Agents

Each stage of the question-to-answer pipeline is an agent returning
``Ok`` or ``Err``.

Available Agents:
    - ContextAgent: Store statistics for prompt grounding
    - SQLAgent: Question to candidate SQL
    - ValidatorAgent: Safety gate for candidate SQL
    - ExecutorAgent: Read-only execution
"""

from storechat.agents.base import BaseAgent
from storechat.agents.context import ContextAgent
from storechat.agents.executor import ExecutorAgent, classify_error
from storechat.agents.sql import ResponseParseError, SQLAgent, parse_model_response
from storechat.agents.validator import SQLValidator, ValidatorAgent, validate_sql

__all__ = [
    "BaseAgent",
    "ContextAgent",
    "ExecutorAgent",
    "classify_error",
    "ResponseParseError",
    "SQLAgent",
    "parse_model_response",
    "SQLValidator",
    "ValidatorAgent",
    "validate_sql",
]
