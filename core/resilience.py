# core/resilience.py
import logging
import math
import threading
import time
from typing import Callable
from util.enums import BreakerState

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CircuitBreaker:
    """
    Process-wide guard in front of the embedding provider.

    CLOSED --(threshold consecutive failures)--> OPEN
    OPEN --(reset timeout elapsed, next call)--> HALF_OPEN
    HALF_OPEN --success--> CLOSED, --failure--> OPEN

    All transitions happen under one lock; the local model runs in worker
    threads, so asyncio alone does not make these counters atomic.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._threshold = max(1, int(failure_threshold))
        self._reset_timeout = float(reset_timeout)
        self._clock = clock
        self._lock = threading.Lock()
        self._state = BreakerState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> BreakerState:
        with self._lock:
            return self._state

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def allow_request(self) -> bool:
        with self._lock:
            if self._state is not BreakerState.OPEN:
                return True
            if self._clock() - self._opened_at >= self._reset_timeout:
                self._state = BreakerState.HALF_OPEN
                logger.info("breaker.half_open")
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            if self._state is BreakerState.HALF_OPEN:
                logger.info("breaker.closed")
            self._state = BreakerState.CLOSED
            self._failures = 0

    def record_failure(self) -> BreakerState:
        with self._lock:
            self._failures += 1
            if (
                self._state is BreakerState.HALF_OPEN
                or self._failures >= self._threshold
            ):
                if self._state is not BreakerState.OPEN:
                    logger.warning("breaker.open failures=%d", self._failures)
                self._state = BreakerState.OPEN
                self._opened_at = self._clock()
            return self._state


class RateLimiter:
    """
    Fixed one-minute window over requests and estimated tokens.
    `reserve` books capacity atomically and returns how long the caller must sleep first.
    """

    WINDOW_SECONDS = 60.0

    def __init__(
        self,
        requests_per_minute: int = 3000,
        tokens_per_minute: int = 1_000_000,
        clock: Clock = time.monotonic,
    ) -> None:
        self._rpm = max(1, int(requests_per_minute))
        self._tpm = max(1, int(tokens_per_minute))
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start = clock()
        self._requests = 0
        self._tokens = 0

    @staticmethod
    def estimate_tokens(text: str) -> int:
        # ~4 characters per token for English text
        return math.ceil(len(text or "") / 4)

    def reserve(self, requests: int, tokens: int) -> float:
        with self._lock:
            now = self._clock()
            if now - self._window_start >= self.WINDOW_SECONDS:
                self._window_start = now
                self._requests = 0
                self._tokens = 0

            fits = (
                self._requests + requests <= self._rpm
                and self._tokens + tokens <= self._tpm
            )
            if fits or (self._requests == 0 and self._tokens == 0):
                self._requests += requests
                self._tokens += tokens
                # window may already be booked ahead of `now`
                return max(0.0, self._window_start - now)

            # Book into the next window; caller waits until it opens.
            next_start = self._window_start + self.WINDOW_SECONDS
            wait = max(0.0, next_start - now)
            self._window_start = next_start
            self._requests = requests
            self._tokens = tokens
            logger.info("ratelimit.wait ms=%d", int(wait * 1000))
            return wait
