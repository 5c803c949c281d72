"""
Base Agent Framework

Abstract base class for every stage of the StoreChat pipeline.
Provides a consistent interface, timing, logging, and error capture.

Usage:
    class MyAgent(BaseAgent):
        def __init__(self, logger=None):
            super().__init__(name="MyAgent", logger=logger)

        async def execute(self, input: AgentInput) -> Result[str]:
            return Ok("value")
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from storechat.models import AgentInput, Err, ErrorKind, Result


class BaseAgent(ABC):
    """
    Abstract base class for all pipeline agents.

    Responsibilities:
        - Define standard interface via execute() method
        - Provide timing and performance tracking
        - Log every outcome with tenant context
        - Turn unexpected exceptions into ``Err(INTERNAL)``

    Attributes:
        name: Unique identifier for this agent
        logger: Injected logger (defaults to ``storechat.agents.<name>``)

    Design Pattern:
        execute() returns ``Ok`` or ``Err`` and never raises for expected
        failures. The __call__ method wraps execute() with:
        - Performance timing
        - Structured logging
        - Stage tagging of ``Err`` results
    """

    def __init__(self, name: str, logger: logging.Logger | None = None):
        """
        Initialize base agent.

        Args:
            name: Unique identifier for this agent (e.g., "ValidatorAgent")
            logger: Logger to use instead of the default per-agent logger
        """
        self.name = name
        self.logger = logger or logging.getLogger(f"storechat.agents.{name}")

        self.logger.debug(f"Initialized {self.name}", extra={"agent": self.name})

    @abstractmethod
    async def execute(self, input: AgentInput) -> Result[Any]:
        """
        Execute the agent's core logic.

        Args:
            input: Typed input data for the agent

        Returns:
            ``Ok(value)`` on success, ``Err(kind, detail)`` on expected failure
        """

    async def __call__(self, input: AgentInput) -> Result[Any]:
        """
        Execute the agent with timing, logging, and error capture.

        This method wraps execute() and should NOT be overridden.
        """
        start_time = time.perf_counter()

        self.logger.info(
            f"Starting {self.name}",
            extra={"agent": self.name, "tenant_id": input.tenant_id},
        )

        try:
            result = await self.execute(input)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(
                f"Unexpected error in {self.name}",
                extra={
                    "agent": self.name,
                    "tenant_id": input.tenant_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": duration_ms,
                },
                exc_info=True,
            )
            return Err(
                kind=ErrorKind.INTERNAL,
                detail=f"Unexpected error: {e}",
                stage=self.name,
                context={"error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000

        if isinstance(result, Err):
            result = result.with_stage(self.name)
            self.logger.warning(
                f"Failed {self.name}",
                extra={
                    "agent": self.name,
                    "tenant_id": input.tenant_id,
                    "duration_ms": duration_ms,
                    **result.to_log_extra(),
                },
            )
            return result

        self.logger.info(
            f"Completed {self.name}",
            extra={
                "agent": self.name,
                "tenant_id": input.tenant_id,
                "duration_ms": duration_ms,
            },
        )
        return result
