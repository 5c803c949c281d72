"""
Completion provider interface.

A provider turns an LLMRequest into an LLMResponse. Anything that goes
wrong on the wire surfaces as LLMProviderError; the completion client
decides what that means for the pipeline.
"""

import logging
from abc import ABC, abstractmethod

from storechat.llm.models import LLMRequest, LLMResponse


class LLMProviderError(Exception):
    """Transport-level failure talking to a completion provider."""


class BaseLLMProvider(ABC):
    """
    Shared plumbing for completion providers.

    Subclasses implement ``generate``; request defaults and token accounting
    logs live here so every provider reports the same fields.
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
        logger: logging.Logger | None = None,
    ):
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.logger = logger or logging.getLogger(f"storechat.llm.{provider_name}")

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Run one completion.

        Raises:
            LLMProviderError: When the endpoint cannot be reached, times out
                or answers with an API error
        """

    def _with_defaults(self, request: LLMRequest) -> LLMRequest:
        """Copy of ``request`` with unset sampling fields filled in."""
        updates = {}
        if request.temperature is None:
            updates["temperature"] = self.temperature
        if request.max_tokens is None:
            updates["max_tokens"] = self.max_tokens
        return request.model_copy(update=updates) if updates else request

    def _log_usage(self, request: LLMRequest, response: LLMResponse) -> None:
        # Message bodies carry tenant questions; only sizes are logged
        self.logger.debug(
            "Completion usage",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "messages": len(request.messages),
                "prompt_chars": sum(len(m.content) for m in request.messages),
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "finish_reason": response.finish_reason,
            },
        )
