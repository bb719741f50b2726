"""Data models for the generative-text service boundary."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from typing_extensions import TypedDict


class LLMProvider(str, Enum):
    """Available completion providers."""

    OPENAI_COMPATIBLE = "openai_compatible"


class CompletionMessage(TypedDict):
    """Message in completion choice."""

    role: str
    content: Any  # Can be str or None - converted to str in the property


class CompletionChoice(TypedDict, total=False):
    """Choice in completion response."""

    index: int
    message: CompletionMessage
    finish_reason: str


class UsageInfo(TypedDict, total=False):
    """Token usage information."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


def _default_usage_info() -> UsageInfo:
    """Create default empty UsageInfo."""
    return UsageInfo()


class CompletionRequest(BaseModel):
    """Request for text completion."""

    model: str | None = None
    messages: list[dict[str, str]]
    temperature: float = 0.3
    max_tokens: int | None = None
    system: str | None = None


class CompletionResponse(BaseModel):
    """Response from text completion."""

    id: str = ""
    model: str = ""
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: UsageInfo = Field(default_factory=_default_usage_info)
    provider: LLMProvider

    @property
    def content(self) -> str:
        """Text of the first choice; empty when the service sent nothing."""
        if not self.choices:
            return ""
        message = self.choices[0].get("message") or {}
        value = message.get("content")
        return "" if value is None else str(value)
