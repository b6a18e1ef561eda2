"""Tests for restdecl.client.retry."""

from __future__ import annotations

import pytest

from restdecl.client.classifier import Retryable, TransportFailure
from restdecl.client.retry import (
    ExponentialBackoff,
    GiveUp,
    NoRetry,
    RetryState,
    WaitThenRetry,
)
from restdecl.models import RetryConfig

FAULT = TransportFailure(message="ConnectError")


def _state(attempts: int) -> RetryState:
    return RetryState(attempts=attempts, last_failure=FAULT)


class TestExponentialBackoff:
    def test_default_schedule(self) -> None:
        policy = ExponentialBackoff()
        delays = [policy.next_delay(_state(n), FAULT) for n in range(1, 6)]
        assert delays == [
            WaitThenRetry(100),
            WaitThenRetry(150),
            WaitThenRetry(225),
            WaitThenRetry(337),
            GiveUp(),
        ]

    def test_delay_capped_at_max(self) -> None:
        policy = ExponentialBackoff(max_attempts=20, base_delay_ms=100, multiplier=2, max_delay_ms=1000)
        assert policy.backoff_ms(4) == 800
        assert policy.backoff_ms(5) == 1000
        assert policy.backoff_ms(15) == 1000

    def test_delays_never_decrease(self) -> None:
        policy = ExponentialBackoff(max_attempts=50)
        delays = [policy.backoff_ms(n) for n in range(1, 50)]
        assert delays == sorted(delays)
        assert max(delays) == 1000

    def test_single_attempt_gives_up_immediately(self) -> None:
        assert ExponentialBackoff(max_attempts=1).next_delay(_state(1), FAULT) == GiveUp()

    def test_suggested_delay_overrides_backoff(self) -> None:
        failure = Retryable(suggested_delay_ms=5000, cause_status=503)
        assert ExponentialBackoff().next_delay(_state(1), failure) == WaitThenRetry(5000)

    def test_suggested_delay_not_capped(self) -> None:
        failure = Retryable(suggested_delay_ms=60000, cause_status=429)
        policy = ExponentialBackoff(max_delay_ms=1000)
        assert policy.next_delay(_state(2), failure) == WaitThenRetry(60000)

    def test_suggested_delay_does_not_extend_budget(self) -> None:
        failure = Retryable(suggested_delay_ms=1000, cause_status=503)
        assert ExponentialBackoff(max_attempts=3).next_delay(_state(3), failure) == GiveUp()

    def test_from_config(self) -> None:
        policy = ExponentialBackoff.from_config(
            RetryConfig(max_attempts=3, base_delay_ms=50, multiplier=2.0, max_delay_ms=400)
        )
        assert policy.max_attempts == 3
        assert policy.backoff_ms(3) == 200
        assert "max_attempts=3" in repr(policy)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay_ms": -1},
            {"multiplier": 0.5},
            {"max_delay_ms": -5},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ExponentialBackoff(**kwargs)


class TestNoRetry:
    def test_always_gives_up(self) -> None:
        policy = NoRetry()
        assert policy.next_delay(_state(1), FAULT) == GiveUp()
        assert policy.next_delay(_state(1), Retryable(suggested_delay_ms=10)) == GiveUp()
