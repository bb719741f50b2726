"""Generative-text service integration."""

from scriptcontinuity.llm.base import BaseCompletionProvider
from scriptcontinuity.llm.client import GenerativeClient
from scriptcontinuity.llm.models import (
    CompletionRequest,
    CompletionResponse,
    LLMProvider,
)
from scriptcontinuity.llm.retry_strategy import RetryStrategy
from scriptcontinuity.llm.usage import UsageSnapshot, UsageTracker

__all__ = [
    "BaseCompletionProvider",
    "CompletionRequest",
    "CompletionResponse",
    "GenerativeClient",
    "LLMProvider",
    "RetryStrategy",
    "UsageSnapshot",
    "UsageTracker",
]
