"""
Routekit Circuit Breaker — one per provider / channel.

Protects routing from cascading failures:
- CLOSED: normal operation
- OPEN: candidate skipped until recovery_timeout elapses
- HALF_OPEN: next call is a probe; success closes, failure reopens

Retries and fallbacks live in FallbackChain; the breaker only tracks state.
"""
from __future__ import annotations
from typing import Any, Callable, Optional
from enum import Enum
import inspect
import time

from routekit.config import ResilienceConfig
from routekit.errors import CircuitOpenError
from routekit.observability import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class CircuitState(str, Enum):
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing recovery


async def call_maybe_async(func: Callable, *args, **kwargs) -> Any:
    """Call a sync or async callable and return its result."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class CircuitBreaker:
    """Consecutive-failure circuit breaker with time-based recovery."""

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Clock = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self._clock() - self._opened_at >= self.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def allow_request(self) -> bool:
        return self.state != CircuitState.OPEN

    def retry_after(self) -> float:
        """Seconds until an open breaker lets a probe through."""
        if self.state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self._clock() - self._opened_at))

    def record_success(self) -> None:
        self._failure_count = 0
        if self._state != CircuitState.CLOSED:
            self._transition(CircuitState.CLOSED)

    def record_failure(self) -> None:
        self._failure_count += 1
        state = self.state
        if state == CircuitState.HALF_OPEN or (
            state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold
        ):
            self._opened_at = self._clock()
            self._transition(CircuitState.OPEN)

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """Execute func under breaker protection."""
        if not self.allow_request():
            raise CircuitOpenError(self.name, self.retry_after())
        try:
            result = await call_maybe_async(func, *args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.CLOSED:
            self._opened_at = None
        logger.info(
            "circuit.transition",
            breaker=self.name,
            from_state=old_state.value,
            to_state=new_state.value,
            failures=self._failure_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "retry_after": round(self.retry_after(), 3),
        }


class BreakerRegistry:
    """Lazily creates one breaker per candidate name with shared settings."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Clock = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    @classmethod
    def from_config(cls, config: ResilienceConfig, clock: Clock = time.monotonic) -> "BreakerRegistry":
        return cls(
            failure_threshold=config.failure_threshold,
            recovery_timeout=config.recovery_timeout,
            clock=clock,
        )

    def get(self, name: str) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(
                name=name,
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
                clock=self._clock,
            )
            self._breakers[name] = breaker
        return breaker

    def is_open(self, name: str) -> bool:
        breaker = self._breakers.get(name)
        return breaker is not None and not breaker.allow_request()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {name: b.to_dict() for name, b in sorted(self._breakers.items())}
