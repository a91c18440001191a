"""
Tests for the circuit breaker and the embedding rate limiter.
"""

import threading

import pytest

from core.resilience import CircuitBreaker, RateLimiter
from util.enums import BreakerState


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class TestCircuitBreaker:
    def test_opens_after_threshold_consecutive_failures(self):
        breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30, clock=FakeClock())
        assert breaker.record_failure() is BreakerState.CLOSED
        assert breaker.record_failure() is BreakerState.CLOSED
        assert breaker.record_failure() is BreakerState.OPEN
        assert breaker.allow_request() is False

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(failure_threshold=2, clock=FakeClock())
        breaker.record_failure()
        breaker.record_success()
        assert breaker.failures == 0
        breaker.record_failure()
        assert breaker.state is BreakerState.CLOSED

    def test_half_open_after_reset_timeout_then_closes_on_success(self):
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, reset_timeout=30, clock=clock)
        breaker.record_failure()
        clock.advance(29.9)
        assert breaker.allow_request() is False
        clock.advance(0.2)
        assert breaker.allow_request() is True
        assert breaker.state is BreakerState.HALF_OPEN
        breaker.record_success()
        assert breaker.state is BreakerState.CLOSED

    def test_half_open_failure_reopens(self):
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=5, reset_timeout=10, clock=clock)
        for _ in range(5):
            breaker.record_failure()
        clock.advance(10)
        assert breaker.allow_request() is True
        assert breaker.record_failure() is BreakerState.OPEN
        assert breaker.allow_request() is False

    def test_concurrent_failures_are_counted_exactly(self):
        breaker = CircuitBreaker(failure_threshold=10_000, clock=FakeClock())

        def hammer():
            for _ in range(500):
                breaker.record_failure()

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert breaker.failures == 4000


class TestRateLimiter:
    def test_token_estimate(self):
        assert RateLimiter.estimate_tokens("") == 0
        assert RateLimiter.estimate_tokens("abcd") == 1
        assert RateLimiter.estimate_tokens("abcde") == 2

    def test_within_budget_does_not_wait(self):
        limiter = RateLimiter(requests_per_minute=3, tokens_per_minute=100, clock=FakeClock())
        assert limiter.reserve(1, 10) == 0.0
        assert limiter.reserve(1, 10) == 0.0
        assert limiter.reserve(1, 10) == 0.0

    def test_request_budget_exhausted_waits_for_next_window(self):
        clock = FakeClock()
        limiter = RateLimiter(requests_per_minute=2, tokens_per_minute=1000, clock=clock)
        limiter.reserve(1, 1)
        clock.advance(15)
        limiter.reserve(1, 1)
        assert limiter.reserve(1, 1) == pytest.approx(45.0)
        # next window is already booked ahead; it still has room for one more
        assert limiter.reserve(1, 1) == pytest.approx(45.0)
        assert limiter.reserve(1, 1) == pytest.approx(45.0 + 60.0)

    def test_token_budget(self):
        limiter = RateLimiter(requests_per_minute=100, tokens_per_minute=50, clock=FakeClock())
        assert limiter.reserve(1, 40) == 0.0
        assert limiter.reserve(1, 20) == pytest.approx(60.0)

    def test_oversized_call_in_empty_window_is_allowed(self):
        limiter = RateLimiter(requests_per_minute=10, tokens_per_minute=50, clock=FakeClock())
        assert limiter.reserve(1, 500) == 0.0

    def test_window_rolls_over(self):
        clock = FakeClock()
        limiter = RateLimiter(requests_per_minute=1, tokens_per_minute=1000, clock=clock)
        limiter.reserve(1, 1)
        clock.advance(60)
        assert limiter.reserve(1, 1) == 0.0
