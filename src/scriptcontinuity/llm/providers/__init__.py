"""Completion provider implementations."""

from scriptcontinuity.llm.providers.openai_compatible import OpenAICompatibleProvider

__all__ = ["OpenAICompatibleProvider"]
