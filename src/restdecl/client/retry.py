"""Retry policies for transient failures.

After every retryable failure the client records it in the call's
:class:`RetryState` and asks its :class:`RetryPolicy` what to do next. The
answer is a :data:`Decision`: :class:`WaitThenRetry` or :class:`GiveUp`.

Transport faults and retryable HTTP failures draw from the same attempt
budget. A ``Retry-After`` delay suggested by the server replaces the computed
backoff for the next wait only; it never grants extra attempts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from restdecl.client.classifier import ClassifiedFailure, Retryable, TransportFailure
from restdecl.models import RetryConfig


@dataclass
class RetryState:
    """Call-scoped retry bookkeeping, owned by a single client call.

    Attributes:
        attempts: Transport invocations made so far in this call.
        last_failure: Most recent failure, or ``None`` before the first one.
        delays_ms: Every wait scheduled so far, in order.
    """

    attempts: int = 0
    last_failure: Optional[ClassifiedFailure] = None
    delays_ms: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class WaitThenRetry:
    """Sleep for ``delay_ms`` milliseconds, then send again."""

    delay_ms: int


@dataclass(frozen=True)
class GiveUp:
    """Stop retrying and raise the last failure."""


Decision = Union[WaitThenRetry, GiveUp]


class RetryPolicy(Protocol):
    """Decides whether and when to retry after a transient failure."""

    def next_delay(
        self,
        state: RetryState,
        failure: Retryable | TransportFailure,
    ) -> Decision:
        ...


class ExponentialBackoff:
    """Exponential backoff capped by a maximum delay and attempt count.

    After the *n*-th failed attempt the wait is
    ``min(base_delay_ms * multiplier ** (n - 1), max_delay_ms)``, so the
    defaults produce 100, 150, 225 and 337 ms before giving up on the fifth
    failure.

    Args:
        max_attempts: Total attempts including the first (``1`` disables
            retries).
        base_delay_ms: Delay before the first retry.
        multiplier: Growth factor between consecutive delays.
        max_delay_ms: Upper bound on computed delays. Server-suggested
            delays are not capped.

    Raises:
        ValueError: If any parameter is out of range.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay_ms: int = 100,
        multiplier: float = 1.5,
        max_delay_ms: int = 1000,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {base_delay_ms}")
        if multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {multiplier}")
        if max_delay_ms < 0:
            raise ValueError(f"max_delay_ms must be >= 0, got {max_delay_ms}")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.multiplier = multiplier
        self.max_delay_ms = max_delay_ms

    @classmethod
    def from_config(cls, config: RetryConfig) -> ExponentialBackoff:
        """Build a policy from a :class:`~restdecl.models.RetryConfig`."""
        return cls(
            max_attempts=config.max_attempts,
            base_delay_ms=config.base_delay_ms,
            multiplier=config.multiplier,
            max_delay_ms=config.max_delay_ms,
        )

    def next_delay(
        self,
        state: RetryState,
        failure: Retryable | TransportFailure,
    ) -> Decision:
        """Decide what follows the failure of attempt ``state.attempts``."""
        if state.attempts >= self.max_attempts:
            return GiveUp()

        suggested = failure.suggested_delay_ms if isinstance(failure, Retryable) else None
        if suggested is not None:
            return WaitThenRetry(suggested)
        return WaitThenRetry(self.backoff_ms(state.attempts))

    def backoff_ms(self, attempts: int) -> int:
        """Computed delay after *attempts* failed attempts."""
        delay = self.base_delay_ms * self.multiplier ** max(attempts - 1, 0)
        return int(min(delay, self.max_delay_ms))

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(max_attempts={self.max_attempts}, "
            f"base_delay_ms={self.base_delay_ms}, multiplier={self.multiplier}, "
            f"max_delay_ms={self.max_delay_ms})"
        )


class NoRetry:
    """Fail fast: every transient failure is final."""

    def next_delay(
        self,
        state: RetryState,
        failure: Retryable | TransportFailure,
    ) -> Decision:
        return GiveUp()
