"""Generative-text client with retry and usage tracking."""

from __future__ import annotations

from typing import Any

from scriptcontinuity.config import ContinuitySettings, get_logger, get_settings
from scriptcontinuity.exceptions import ServiceError
from scriptcontinuity.llm.base import BaseCompletionProvider
from scriptcontinuity.llm.providers import OpenAICompatibleProvider
from scriptcontinuity.llm.retry_strategy import RetryStrategy
from scriptcontinuity.llm.usage import UsageTracker

logger = get_logger(__name__)

CONNECTION_TEST_PROMPT = 'Reply with the JSON object {"ok": true}.'


class GenerativeClient:
    """Single entry point for all service calls made by the analyzer.

    Wraps one provider with the retry policy and records every attempt on
    the injected ``UsageTracker``.
    """

    def __init__(
        self,
        provider: BaseCompletionProvider,
        usage: UsageTracker | None = None,
        retry: RetryStrategy | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            provider: Provider that performs the HTTP exchange
            usage: Attempt counter; a fresh one is created when omitted
            retry: Retry policy; three attempts by default
        """
        self.provider = provider
        self.usage = usage or UsageTracker()
        self.retry = retry or RetryStrategy()

    @classmethod
    def from_settings(
        cls,
        settings: ContinuitySettings | None = None,
        usage: UsageTracker | None = None,
    ) -> GenerativeClient:
        """Build a client for the configured OpenAI-compatible endpoint.

        Raises:
            ConfigurationError: If the endpoint or API key is missing
        """
        settings = settings or get_settings()
        provider = OpenAICompatibleProvider(
            endpoint=settings.llm_endpoint,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        )
        retry = RetryStrategy(
            max_attempts=settings.retry_attempts,
            fixed_delay=settings.retry_fixed_delay,
            backoff_base=settings.retry_backoff_base,
        )
        return cls(provider, usage=usage, retry=retry)

    async def __aenter__(self) -> GenerativeClient:
        """Enter async context manager."""
        return self

    async def __aexit__(self, *_: Any) -> None:
        """Exit async context manager and cleanup."""
        await self.aclose()

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def _request_text(self, prompt: str, max_tokens: int) -> str:
        response = await self.provider.request(prompt, max_tokens)
        text = response.content
        if not text.strip():
            raise ServiceError(
                "Empty response from service",
                provider=self.provider.provider_type.value,
            )
        return text

    async def complete(self, prompt: str, max_tokens: int) -> str:
        """Send a prompt and return the completion text.

        Args:
            prompt: Full prompt text
            max_tokens: Completion token budget

        Returns:
            Non-empty completion text

        Raises:
            RateLimitedError: Still rate limited after the last attempt
            AuthFailedError: Credentials rejected (never retried)
            ServiceError: Any other failure, including an empty completion
        """

        async def attempt() -> str:
            return await self._request_text(prompt, max_tokens)

        return await self.retry.execute_with_retry(
            attempt, usage=self.usage, operation_name="completion"
        )

    async def test_connection(self) -> str:
        """Send one tiny prompt without retrying.

        The usage tracker still sees the attempt. Errors propagate unchanged
        so the caller can show exactly what the service said.
        """
        self.usage.record_call()
        try:
            text = await self._request_text(CONNECTION_TEST_PROMPT, 16)
        except Exception as e:
            self.usage.record_error(e)
            logger.warning(
                "Connection test failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        self.usage.record_success()
        logger.info("Connection test succeeded", response_preview=text[:80])
        return text
