"""
Unit tests for the completion client.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from storechat.llm import CompletionClient, LLMProviderError, LLMResponse
from storechat.models import Err, ErrorKind, Ok


@pytest.fixture
def provider():
    provider = MagicMock()
    provider.generate = AsyncMock(
        return_value=LLMResponse(
            content='{"sql": "SELECT 1", "explanation": "x"}',
            model="gpt-4o",
            provider="openai",
        )
    )
    return provider


class TestCompletionClient:
    """Test CompletionClient.complete."""

    @pytest.mark.asyncio
    async def test_returns_raw_text(self, provider):
        client = CompletionClient(provider)

        result = await client.complete("system prompt", "What was my revenue?")

        assert result == Ok('{"sql": "SELECT 1", "explanation": "x"}')

    @pytest.mark.asyncio
    async def test_request_shape(self, provider):
        client = CompletionClient(provider, max_tokens=512)

        await client.complete("system prompt", "What was my revenue?")

        request = provider.generate.call_args.args[0]
        assert [m.role for m in request.messages] == ["system", "user"]
        assert request.messages[0].content == "system prompt"
        assert request.messages[1].content == "What was my revenue?"
        assert request.temperature == 0.0
        assert request.max_tokens == 512
        assert request.metadata == {"response_format": {"type": "json_object"}}

    @pytest.mark.asyncio
    async def test_provider_error(self, provider):
        provider.generate.side_effect = LLMProviderError("OpenAI API error: 500")
        client = CompletionClient(provider)

        result = await client.complete("system prompt", "question")

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.GENERATION
        assert result.context == {"failure": "transport"}
        assert "OpenAI API error" in result.detail

    @pytest.mark.asyncio
    async def test_timeout(self, provider):
        async def slow(request):
            await asyncio.sleep(1)

        provider.generate = slow
        client = CompletionClient(provider, timeout=0.01)

        result = await client.complete("system prompt", "question")

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.GENERATION
        assert "timed out" in result.detail

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n"])
    async def test_empty_response(self, provider, content):
        provider.generate.return_value = LLMResponse(
            content=content, model="gpt-4o", provider="openai"
        )
        client = CompletionClient(provider)

        result = await client.complete("system prompt", "question")

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.GENERATION
        assert result.context == {"failure": "empty_response"}

    @pytest.mark.asyncio
    async def test_user_message_hides_detail(self, provider):
        provider.generate.side_effect = LLMProviderError("secret upstream detail")
        client = CompletionClient(provider)

        result = await client.complete("system prompt", "question")

        assert "secret upstream detail" not in result.user_message
