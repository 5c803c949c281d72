"""
Completion Client

Sends (system prompt, question) to a completion provider and returns the
raw text as a tagged result.
"""

import asyncio
import logging

from storechat.llm.base import BaseLLMProvider, LLMProviderError
from storechat.llm.models import LLMMessage, LLMRequest
from storechat.models import Err, ErrorKind, Ok, Result

JSON_RESPONSE_FORMAT = {"type": "json_object"}


class CompletionClient:
    """
    Adapter between the pipeline and an LLM provider.

    Requests are deterministic (temperature 0) and ask for a JSON object.
    Transport failures and empty responses become ``Err(GENERATION)``.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        max_tokens: int = 1024,
        timeout: float = 30,
        logger: logging.Logger | None = None,
    ):
        self.provider = provider
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    async def complete(self, system_prompt: str, question: str) -> Result[str]:
        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=system_prompt),
                LLMMessage(role="user", content=question),
            ],
            temperature=0.0,
            max_tokens=self.max_tokens,
            metadata={"response_format": JSON_RESPONSE_FORMAT},
        )

        try:
            response = await asyncio.wait_for(
                self.provider.generate(request), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.logger.error(
                "Completion timed out", extra={"timeout_seconds": self.timeout}
            )
            return Err(
                kind=ErrorKind.GENERATION,
                detail=f"Transport failure: completion timed out after {self.timeout}s",
                context={"failure": "transport"},
            )
        except LLMProviderError as e:
            self.logger.error("Completion transport failure", extra={"error": str(e)})
            return Err(
                kind=ErrorKind.GENERATION,
                detail=f"Transport failure: {e}",
                context={"failure": "transport"},
            )

        if not response.content.strip():
            self.logger.warning(
                "Completion returned empty content",
                extra={"finish_reason": response.finish_reason},
            )
            return Err(
                kind=ErrorKind.GENERATION,
                detail="Empty response from completion endpoint",
                context={"failure": "empty_response"},
            )

        self.logger.info(
            "Completion received",
            extra={
                "model": response.model,
                "total_tokens": response.usage.total_tokens,
                "response_length": len(response.content),
            },
        )
        return Ok(response.content)
