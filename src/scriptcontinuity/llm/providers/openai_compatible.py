"""Generic OpenAI-compatible chat-completions provider."""

from __future__ import annotations

import json
from typing import Any

import httpx

from scriptcontinuity.config import get_logger
from scriptcontinuity.exceptions import (
    AuthFailedError,
    ConfigurationError,
    RateLimitedError,
    ServiceError,
)
from scriptcontinuity.llm.base import BaseCompletionProvider
from scriptcontinuity.llm.models import (
    CompletionRequest,
    CompletionResponse,
    LLMProvider,
)

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a script supervisor's assistant. Answer with valid JSON only."
)


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not worth parsing here
        return None


class OpenAICompatibleProvider(BaseCompletionProvider):
    """Chat-completions provider for any OpenAI-compatible endpoint."""

    provider_type = LLMProvider.OPENAI_COMPATIBLE

    def __init__(
        self,
        endpoint: str | None,
        api_key: str | None,
        model: str | None = None,
        temperature: float = 0.3,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize OpenAI-compatible provider.

        Args:
            endpoint: API base URL, e.g. ``https://api.example.com/v1``
            api_key: Bearer token for the endpoint
            model: Model name; the endpoint's default is used when omitted
            temperature: Sampling temperature
            timeout: HTTP request timeout in seconds
            client: Pre-built HTTP client (tests pass one with a mock transport)
        """
        if not endpoint or not api_key:
            raise ConfigurationError(
                message="OpenAI-compatible endpoint not configured",
                hint="Set SCRIPTCONTINUITY_LLM_ENDPOINT and "
                "SCRIPTCONTINUITY_LLM_API_KEY",
            )
        self.base_url = endpoint.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

        logger.info(
            "Initialized OpenAI-compatible provider",
            endpoint=self.base_url,
            model=model or "endpoint default",
            timeout=timeout,
        )

    async def __aenter__(self) -> OpenAICompatibleProvider:
        """Enter async context manager."""
        return self

    async def __aexit__(self, *_: Any) -> None:
        """Exit async context manager and cleanup."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _payload(self, request: CompletionRequest) -> dict[str, Any]:
        messages = list(request.messages)
        if request.system:
            messages = [{"role": "system", "content": request.system}, *messages]
        payload: dict[str, Any] = {
            "messages": messages,
            "temperature": request.temperature,
        }
        if request.model:
            payload["model"] = request.model
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        return payload

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status == 200:
            return
        body = response.text
        provider = self.provider_type.value
        logger.error(
            "OpenAI-compatible API error",
            status_code=status,
            error_text=body[:500],
        )
        if status == 429:
            raise RateLimitedError(
                retry_after=_retry_after(response), provider=provider, body=body
            )
        if status in (401, 403):
            raise AuthFailedError(status=status, provider=provider, body=body)
        raise ServiceError(
            f"API error: HTTP {status}", status=status, body=body, provider=provider
        )

    async def request(self, prompt: str, max_tokens: int) -> CompletionResponse:
        """Send one prompt to ``/chat/completions``.

        Raises:
            RateLimitedError: HTTP 429
            AuthFailedError: HTTP 401 or 403
            ServiceError: Any other HTTP or transport failure, or a malformed body
        """
        request = CompletionRequest(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=max_tokens,
            system=SYSTEM_PROMPT,
        )
        completions_url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.debug(
            "Sending completion request",
            endpoint=completions_url,
            prompt_length=len(prompt),
            max_tokens=max_tokens,
        )

        try:
            response = await self.client.post(
                completions_url, headers=headers, json=self._payload(request)
            )
        except httpx.HTTPError as e:
            logger.error(
                "OpenAI-compatible completion failed",
                error=str(e),
                error_type=type(e).__name__,
                endpoint=completions_url,
            )
            raise ServiceError(
                f"Request to {completions_url} failed: {e}",
                provider=self.provider_type.value,
            ) from e

        self._raise_for_status(response)

        try:
            data: dict[str, Any] = response.json()
            result = CompletionResponse(
                id=data.get("id") or "",
                model=data.get("model") or (self.model or ""),
                choices=data.get("choices") or [],
                usage=data.get("usage") or {},
                provider=self.provider_type,
            )
        except (json.JSONDecodeError, AttributeError, ValueError) as e:
            # ValueError also covers pydantic validation of odd choice shapes
            logger.error(
                "OpenAI-compatible completion response parsing failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ServiceError(
                f"Invalid API response: {e}",
                status=response.status_code,
                body=response.text,
                provider=self.provider_type.value,
            ) from e

        logger.debug(
            "Completion received",
            model=result.model,
            response_length=len(result.content),
            usage=dict(result.usage),
        )
        return result
