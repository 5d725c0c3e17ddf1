"""Per-provider circuit breakers.

A breaker opens after ``failure_threshold`` consecutive failures that
happen within ``failure_window_seconds`` of each other, fails fast for
``cooldown_seconds``, then lets exactly one trial call through. A
successful call closes it and resets the failure count.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from nightfall.config.models.toolbus import CircuitBreakerConfig
from nightfall.errors import CircuitOpenError
from nightfall.observability.logging import get_logger
from nightfall.observability.metrics import CIRCUIT_OPENED

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Circuit breaker guarding one provider key."""

    def __init__(
        self,
        key: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key = key
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._failures = 0
        self._last_failure = 0.0
        self._opened_until = 0.0
        self._state = CircuitState.CLOSED
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failures(self) -> int:
        return self._failures

    def _admit(self) -> None:
        """Raise CircuitOpenError unless a call may proceed now."""
        if self._state == CircuitState.CLOSED:
            return
        now = self._clock()
        if self._state == CircuitState.OPEN:
            if now < self._opened_until:
                raise CircuitOpenError(self.key)
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False
            logger.info("circuit_half_open", key=self.key)
        # Half-open: a single trial at a time
        if self._trial_in_flight:
            raise CircuitOpenError(self.key)
        self._trial_in_flight = True

    def record_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info("circuit_closed", key=self.key)
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure = 0.0
        self._opened_until = 0.0
        self._trial_in_flight = False

    def record_failure(self) -> None:
        now = self._clock()
        self._trial_in_flight = False
        if self._state == CircuitState.HALF_OPEN:
            self._open(now)
            return
        if now - self._last_failure > self._config.failure_window_seconds:
            self._failures = 0
        self._failures += 1
        self._last_failure = now
        if self._failures >= self._config.failure_threshold:
            self._open(now)

    def _open(self, now: float) -> None:
        self._state = CircuitState.OPEN
        self._opened_until = now + self._config.cooldown_seconds
        self._last_failure = now
        CIRCUIT_OPENED.labels(key=self.key).inc()
        logger.warning(
            "circuit_opened",
            key=self.key,
            failures=self._failures,
            cooldown_seconds=self._config.cooldown_seconds,
        )

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` under the breaker.

        A call cancelled by an outer timeout counts as a failure.
        """
        self._admit()
        try:
            result = await fn()
        except (Exception, asyncio.CancelledError):
            self.record_failure()
            raise
        self.record_success()
        return result


class CircuitBreakerRegistry:
    """Owns the breakers of one runtime instance, keyed by provider."""

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, key: str) -> CircuitBreaker:
        breaker = self._breakers.get(key)
        if breaker is None:
            breaker = CircuitBreaker(key, self._config, self._clock)
            self._breakers[key] = breaker
        return breaker

    async def call(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        return await self.get(key).call(fn)

    def states(self) -> dict[str, CircuitState]:
        return {key: b.state for key, b in self._breakers.items()}

    def reset(self) -> None:
        self._breakers.clear()
