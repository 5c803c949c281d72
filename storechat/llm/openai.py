"""
OpenAI completion provider.

Chat Completions over the official async SDK. Provider-specific request
options (``response_format``) travel in ``LLMRequest.metadata``.
"""

import logging

import openai
from openai import AsyncOpenAI

from storechat.llm.base import BaseLLMProvider, LLMProviderError
from storechat.llm.models import LLMRequest, LLMResponse, LLMUsage

_KNOWN_FINISH_REASONS = ("stop", "length", "content_filter")


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI chat provider.

    SDK retries are disabled so one question costs at most one call.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
        logger: logging.Logger | None = None,
    ):
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            logger=logger,
        )
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout), max_retries=0)

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._with_defaults(request)

        try:
            completion = await self.client.chat.completions.create(
                model=request.model or self.model,
                messages=[{"role": m.role, "content": m.content} for m in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **request.metadata,
            )
        except openai.APITimeoutError as e:
            self.logger.error("OpenAI request timed out", extra={"timeout_seconds": self.timeout})
            raise LLMProviderError(f"OpenAI request timed out after {self.timeout}s") from e
        except openai.APIError as e:
            self.logger.error("OpenAI API error", extra={"error_type": type(e).__name__})
            raise LLMProviderError(f"OpenAI API error: {e}") from e

        response = self._to_response(completion)
        self._log_usage(request, response)
        return response

    def _to_response(self, completion) -> LLMResponse:
        choice = completion.choices[0] if completion.choices else None
        usage = completion.usage
        finish_reason = choice.finish_reason if choice else None

        return LLMResponse(
            content=(choice.message.content or "") if choice else "",
            model=completion.model,
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
            )
            if usage
            else LLMUsage(),
            finish_reason=finish_reason if finish_reason in _KNOWN_FINISH_REASONS else "stop",
            provider=self.provider_name,
            metadata={"id": completion.id},
        )
