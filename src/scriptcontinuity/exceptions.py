"""Exception hierarchy for scriptcontinuity with helpful error messages."""

from __future__ import annotations

from typing import Any


class ContinuityError(Exception):
    """Base exception with helpful formatting for all scriptcontinuity errors.

    Provides structured error messages with hints and details so that a user
    reading a CLI failure knows what went wrong and what to try next.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            message: Primary error message describing what went wrong
            hint: Optional hint suggesting how to fix the problem
            details: Optional dictionary with additional debugging information
        """
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format the error message with hint and details.

        Returns:
            Formatted error string with all available information
        """
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


class ConfigurationError(ContinuityError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class ParseError(ContinuityError):
    """Free-text service output that could not be coerced into JSON."""

    def __init__(
        self,
        message: str,
        text_preview: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize parse error.

        Args:
            message: Error message
            text_preview: Leading part of the text that failed to parse
            hint: Optional hint
        """
        self.text_preview = text_preview
        details: dict[str, Any] = {}
        if text_preview is not None:
            details["text_preview"] = text_preview
        super().__init__(message=message, hint=hint, details=details or None)


class ValidationError(ContinuityError):
    """Phase output or input data missing the expected shape."""

    pass


class ServiceError(ContinuityError):
    """Generative-text service failure that is neither rate limit nor auth."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize service error.

        Args:
            message: Error message
            status: HTTP status code returned by the service, if any
            body: Response body (truncated) returned by the service, if any
            provider: Provider that raised the error
            hint: Optional hint
        """
        self.status = status
        self.body = body
        self.provider = provider
        details: dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if status is not None:
            details["status"] = status
        if body:
            details["body"] = body[:500]
        super().__init__(message=message, hint=hint, details=details or None)


class RateLimitedError(ServiceError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float | None = None,
        provider: str | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retrying, when the service says
            provider: Provider that raised the error
            body: Response body returned by the service
        """
        self.retry_after = retry_after
        hint = None
        if retry_after:
            hint = f"Please wait {retry_after} seconds before retrying"
        super().__init__(
            message=message, status=429, body=body, provider=provider, hint=hint
        )
        if retry_after and self.details is not None:
            self.details["retry_after"] = retry_after


class AuthFailedError(ServiceError):
    """Credentials rejected by the service (HTTP 401 or 403)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        status: int = 401,
        provider: str | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize auth error."""
        super().__init__(
            message=message,
            status=status,
            body=body,
            provider=provider,
            hint="Check SCRIPTCONTINUITY_LLM_API_KEY and the endpoint it belongs to",
        )


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "api_key": "llm_api_key",  # pragma: allowlist secret
        "model": "llm_model",
        "endpoint": "llm_endpoint",
        "chunksize": "chunk_size",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
