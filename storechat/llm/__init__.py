"""
LLM Provider Module

Completion providers and the pipeline-facing completion client.

Usage:
    from storechat.llm import CompletionClient, OpenAIProvider

    provider = OpenAIProvider(api_key=settings.llm.openai_api_key)
    client = CompletionClient(provider)
    result = await client.complete(system_prompt, "What was my revenue?")
"""

from storechat.llm.base import BaseLLMProvider, LLMProviderError
from storechat.llm.completion import CompletionClient
from storechat.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from storechat.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMProviderError",
    "CompletionClient",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "OpenAIProvider",
]
