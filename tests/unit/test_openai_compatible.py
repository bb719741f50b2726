"""Tests for the OpenAI-compatible provider using an httpx mock transport."""

import json

import httpx
import pytest

from scriptcontinuity.exceptions import (
    AuthFailedError,
    ConfigurationError,
    RateLimitedError,
    ServiceError,
)
from scriptcontinuity.llm.models import LLMProvider
from scriptcontinuity.llm.providers.openai_compatible import OpenAICompatibleProvider


def _provider(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleProvider(
        endpoint="http://llm.test/v1/",
        api_key="test-key",  # pragma: allowlist secret
        client=client,
        **kwargs,
    )


def _completion(content):
    return {
        "id": "cmpl-1",
        "model": "test-model",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


class TestOpenAICompatibleProvider:
    """Test request shape and error mapping."""

    def test_requires_endpoint_and_key(self):
        """Test missing configuration is reported up front."""
        with pytest.raises(ConfigurationError):
            OpenAICompatibleProvider(endpoint=None, api_key="k")
        with pytest.raises(ConfigurationError):
            OpenAICompatibleProvider(endpoint="http://llm.test/v1", api_key=None)

    @pytest.mark.asyncio
    async def test_successful_request(self):
        """Test the POST body, headers and parsed response."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"ok": true}'))

        provider = _provider(handler, model="test-model", temperature=0.1)
        async with provider:
            response = await provider.request("Hello", max_tokens=64)

        assert seen["url"] == "http://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["max_tokens"] == 64
        assert seen["body"]["temperature"] == 0.1
        assert seen["body"]["messages"][0]["role"] == "system"
        assert seen["body"]["messages"][-1] == {"role": "user", "content": "Hello"}
        assert response.content == '{"ok": true}'
        assert response.provider is LLMProvider.OPENAI_COMPATIBLE

    @pytest.mark.asyncio
    async def test_model_omitted_when_not_configured(self):
        """Test the endpoint default model is used when none is set."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=_completion("hi"))

        provider = _provider(handler)
        await provider.request("Hello", max_tokens=8)
        assert "model" not in bodies[0]

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        """Test HTTP 429 maps to RateLimitedError with Retry-After."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "7"}, text="slow down")

        with pytest.raises(RateLimitedError) as exc_info:
            await _provider(handler).request("Hello", max_tokens=8)
        assert exc_info.value.retry_after == 7.0
        assert exc_info.value.status == 429
        assert exc_info.value.body == "slow down"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failed(self, status):
        """Test 401 and 403 map to AuthFailedError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text="bad key")

        with pytest.raises(AuthFailedError) as exc_info:
            await _provider(handler).request("Hello", max_tokens=8)
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_server_error(self):
        """Test other statuses keep the raw body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal trouble")

        with pytest.raises(ServiceError) as exc_info:
            await _provider(handler).request("Hello", max_tokens=8)
        assert exc_info.value.status == 500
        assert "internal trouble" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Test connection failures become ServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ServiceError, match="refused"):
            await _provider(handler).request("Hello", max_tokens=8)

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        """Test a non-JSON 200 response becomes ServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(ServiceError, match="Invalid API response"):
            await _provider(handler).request("Hello", max_tokens=8)
