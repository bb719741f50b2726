"""Usage tracking for generative-service calls."""

from __future__ import annotations

from typing_extensions import TypedDict


class UsageSnapshot(TypedDict):
    """Point-in-time copy of the tracker's counters."""

    calls: int
    successes: int
    errors: int
    rate_limit_hits: int
    last_error: str | None


class UsageTracker:
    """Counts service attempts for one analysis run.

    The client records every attempt here; nothing is kept globally, so a
    fresh tracker (or ``reset()``) gives per-run numbers.
    """

    def __init__(self) -> None:
        """Initialize usage tracker."""
        self.calls = 0
        self.successes = 0
        self.errors = 0
        self.rate_limit_hits = 0
        self.last_error: str | None = None

    def reset(self) -> None:
        """Zero all counters."""
        self.calls = 0
        self.successes = 0
        self.errors = 0
        self.rate_limit_hits = 0
        self.last_error = None

    def record_call(self) -> None:
        """Record that an attempt was started."""
        self.calls += 1

    def record_success(self) -> None:
        self.successes += 1

    def record_error(self, error: Exception) -> None:
        """Record a failed attempt."""
        self.errors += 1
        self.last_error = f"{type(error).__name__}: {error}"

    def record_rate_limit(self) -> None:
        self.rate_limit_hits += 1

    def snapshot(self) -> UsageSnapshot:
        """Current counters."""
        return UsageSnapshot(
            calls=self.calls,
            successes=self.successes,
            errors=self.errors,
            rate_limit_hits=self.rate_limit_hits,
            last_error=self.last_error,
        )
