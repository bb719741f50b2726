"""Base class for completion providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from scriptcontinuity.llm.models import CompletionResponse, LLMProvider


class BaseCompletionProvider(ABC):
    """Base class for completion providers.

    Implementations translate transport failures into ``RateLimitedError``
    (HTTP 429), ``AuthFailedError`` (401/403) or ``ServiceError`` and never
    retry on their own.
    """

    provider_type: LLMProvider

    @abstractmethod
    async def request(self, prompt: str, max_tokens: int) -> CompletionResponse:
        """Send one prompt and return the raw completion."""
        pass

    async def aclose(self) -> None:  # noqa: B027
        """Release transport resources."""
