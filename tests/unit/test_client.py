"""Tests for the generative client wrapper."""

from unittest.mock import AsyncMock, Mock

import pytest

from scriptcontinuity.config import ContinuitySettings
from scriptcontinuity.exceptions import (
    AuthFailedError,
    ConfigurationError,
    ServiceError,
)
from scriptcontinuity.llm.base import BaseCompletionProvider
from scriptcontinuity.llm.client import GenerativeClient
from scriptcontinuity.llm.models import CompletionResponse, LLMProvider
from scriptcontinuity.llm.providers import OpenAICompatibleProvider
from scriptcontinuity.llm.retry_strategy import RetryStrategy


def _response(content):
    return CompletionResponse(
        id="cmpl-1",
        model="test-model",
        choices=[{"index": 0, "message": {"role": "assistant", "content": content}}],
        provider=LLMProvider.OPENAI_COMPATIBLE,
    )


@pytest.fixture
def provider():
    """Provider double returning a fixed completion."""
    provider = Mock(spec=BaseCompletionProvider)
    provider.provider_type = LLMProvider.OPENAI_COMPATIBLE
    provider.request = AsyncMock(return_value=_response('{"ok": true}'))
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def client(provider):
    """Client whose retries never sleep."""
    return GenerativeClient(provider, retry=RetryStrategy(sleep=AsyncMock()))


class TestComplete:
    """Test completion calls."""

    @pytest.mark.asyncio
    async def test_returns_text(self, client, provider):
        """Test the completion text is returned and the attempt counted."""
        assert await client.complete("prompt", 100) == '{"ok": true}'
        provider.request.assert_awaited_once_with("prompt", 100)
        assert client.usage.successes == 1

    @pytest.mark.asyncio
    async def test_empty_completion_is_an_error(self, client, provider):
        """Test blank text is a service error and retried once."""
        provider.request.return_value = _response("   ")
        with pytest.raises(ServiceError, match="Empty response"):
            await client.complete("prompt", 100)
        assert provider.request.await_count == 2
        assert client.usage.errors == 2

    @pytest.mark.asyncio
    async def test_auth_error_propagates(self, client, provider):
        """Test auth failures are not retried."""
        provider.request.side_effect = AuthFailedError()
        with pytest.raises(AuthFailedError):
            await client.complete("prompt", 100)
        assert provider.request.await_count == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_provider(self, client, provider):
        """Test leaving the context closes the transport."""
        async with client:
            pass
        provider.aclose.assert_awaited_once()


class TestConnection:
    """Test the connection probe."""

    @pytest.mark.asyncio
    async def test_success(self, client):
        """Test a good probe returns the reply and counts one call."""
        assert await client.test_connection() == '{"ok": true}'
        assert client.usage.calls == 1
        assert client.usage.successes == 1

    @pytest.mark.asyncio
    async def test_failure_reraised_unchanged(self, client, provider):
        """Test the raw error reaches the caller without retries."""
        error = ServiceError("API error: HTTP 502", status=502, body="bad gateway")
        provider.request.side_effect = error
        with pytest.raises(ServiceError) as exc_info:
            await client.test_connection()
        assert exc_info.value is error
        assert provider.request.await_count == 1
        assert client.usage.errors == 1


class TestFromSettings:
    """Test construction from settings."""

    def test_unconfigured(self):
        """Test missing endpoint raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            GenerativeClient.from_settings(ContinuitySettings(llm_endpoint=None))

    def test_configured(self):
        """Test settings flow into the provider and retry policy."""
        settings = ContinuitySettings(
            llm_endpoint="http://llm.test/v1",
            llm_api_key="key",  # pragma: allowlist secret
            llm_model="small",
            retry_attempts=5,
        )
        client = GenerativeClient.from_settings(settings)
        assert isinstance(client.provider, OpenAICompatibleProvider)
        assert client.provider.model == "small"
        assert client.retry.max_attempts == 5
