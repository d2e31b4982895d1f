"""
Routekit Fallback Chain

Executes an operation against a ranked list of candidates:

1. Candidates whose circuit breaker is OPEN are skipped (never called)
2. Each candidate gets 1 + max_retries tries with exponential backoff
3. A non-retryable ProviderError (card declined, recipient rejected) stops
   the whole chain: falling through would repeat the same refusal elsewhere
4. First success wins; if everything fails the request goes to the DLQ and
   AllCandidatesFailedError carries the full attempt log
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence
import asyncio
import time

from routekit.config import ResilienceConfig
from routekit.errors import AllCandidatesFailedError, NoEligibleCandidateError, ProviderError
from routekit.observability import get_logger, get_tracer
from routekit.resilience.circuit_breaker import BreakerRegistry, call_maybe_async
from routekit.resilience.dlq import DeadLetterQueue
from routekit.resilience.health import HealthTracker

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    backoff_base: float = 0.2
    backoff_max: float = 5.0

    @classmethod
    def from_config(cls, config: ResilienceConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
        )

    def delay(self, attempt: int) -> float:
        """Backoff before retry number attempt + 1 (attempt is 0-based)."""
        return min(self.backoff_base * (2 ** attempt), self.backoff_max)


@dataclass
class Attempt:
    """One call (or skip) of one candidate."""
    candidate: str
    attempt: int
    success: bool
    error: Optional[str] = None
    latency_ms: float = 0.0
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate": self.candidate,
            "attempt": self.attempt,
            "success": self.success,
            "error": self.error,
            "latency_ms": round(self.latency_ms, 2),
            "skipped": self.skipped,
        }


@dataclass
class FallbackOutcome:
    result: Any
    candidate: str
    attempts: list[Attempt] = field(default_factory=list)
    fallback_used: bool = False


class FallbackChain:
    """Ordered execution with breakers, retries, health feedback and DLQ."""

    def __init__(
        self,
        breakers: Optional[BreakerRegistry] = None,
        health: Optional[HealthTracker] = None,
        retry: Optional[RetryPolicy] = None,
        dlq: Optional[DeadLetterQueue] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.breakers = breakers or BreakerRegistry()
        self.health = health or HealthTracker()
        self.retry = retry or RetryPolicy()
        self.dlq = dlq
        self._sleep = sleep
        self._timer = timer

    @classmethod
    def from_config(
        cls,
        config: ResilienceConfig,
        health: Optional[HealthTracker] = None,
        dlq: Optional[DeadLetterQueue] = None,
    ) -> "FallbackChain":
        return cls(
            breakers=BreakerRegistry.from_config(config),
            health=health,
            retry=RetryPolicy.from_config(config),
            dlq=dlq,
        )

    async def execute(
        self,
        candidates: Sequence[str],
        operation: Callable[[str], Any],
        *,
        operation_name: str = "operation",
        payload: Optional[dict[str, Any]] = None,
        tenant_id: str = "",
        dead_letter: bool = True,
    ) -> FallbackOutcome:
        """Run operation(candidate) down the chain until one succeeds."""
        if not candidates:
            raise NoEligibleCandidateError({}, "Fallback chain is empty")

        attempts: list[Attempt] = []
        tracer = get_tracer()
        with tracer.start_as_current_span(f"fallback.{operation_name}") as span:
            span.set_attribute("fallback.candidates", list(candidates))

            for index, name in enumerate(candidates):
                breaker = self.breakers.get(name)
                if not breaker.allow_request():
                    attempts.append(Attempt(candidate=name, attempt=0, success=False,
                                            error="circuit open", skipped=True))
                    logger.info("fallback.skipped", operation=operation_name, candidate=name,
                                retry_after=round(breaker.retry_after(), 2))
                    continue

                for attempt in range(self.retry.max_retries + 1):
                    start = self._timer()
                    try:
                        result = await call_maybe_async(operation, name)
                    except Exception as exc:
                        latency_ms = (self._timer() - start) * 1000
                        attempts.append(Attempt(candidate=name, attempt=attempt + 1, success=False,
                                                error=str(exc), latency_ms=latency_ms))

                        if isinstance(exc, ProviderError) and not exc.retryable:
                            logger.warning("fallback.permanent_failure", operation=operation_name,
                                           candidate=name, error=str(exc))
                            span.set_attribute("fallback.outcome", "permanent_failure")
                            raise

                        self.health.record_failure(name, error=str(exc), latency_ms=latency_ms)
                        breaker.record_failure()
                        logger.warning("fallback.attempt_failed", operation=operation_name,
                                       candidate=name, attempt=attempt + 1, error=str(exc))

                        if not breaker.allow_request():
                            break
                        if attempt < self.retry.max_retries:
                            await self._sleep(self.retry.delay(attempt))
                        continue

                    latency_ms = (self._timer() - start) * 1000
                    self.health.record_success(name, latency_ms=latency_ms)
                    breaker.record_success()
                    attempts.append(Attempt(candidate=name, attempt=attempt + 1, success=True,
                                            latency_ms=latency_ms))

                    fallback_used = index > 0
                    span.set_attribute("fallback.selected", name)
                    span.set_attribute("fallback.outcome", "success")
                    logger.info("fallback.succeeded", operation=operation_name, candidate=name,
                                attempts=len(attempts), fallback_used=fallback_used)
                    return FallbackOutcome(
                        result=result,
                        candidate=name,
                        attempts=attempts,
                        fallback_used=fallback_used,
                    )

            span.set_attribute("fallback.outcome", "exhausted")
            error = AllCandidatesFailedError(attempts)
            if dead_letter and self.dlq is not None:
                self.dlq.enqueue(
                    operation=operation_name,
                    payload=payload or {},
                    error=str(error),
                    attempts=[a.to_dict() for a in attempts],
                    tenant_id=tenant_id,
                )
            logger.error("fallback.exhausted", operation=operation_name,
                         candidates=list(candidates), attempts=len(attempts))
            raise error
