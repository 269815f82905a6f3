"""Retry policy for conditional commits."""

from __future__ import annotations

from dataclasses import dataclass

from vinsync._constants import DEFAULT_RETRY_BASE_DELAY


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded attempts with linear backoff.

    Attempt ``n`` (1-based) that fails waits ``base_delay * n`` seconds
    before attempt ``n + 1``.
    """

    max_attempts: int
    base_delay: float = DEFAULT_RETRY_BASE_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt
