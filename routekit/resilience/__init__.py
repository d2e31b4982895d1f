"""
Routekit Resilience — fault tolerance around routing decisions.

- CircuitBreaker / BreakerRegistry: skip candidates that keep failing
- HealthTracker: observed success rate and latency fed back into scoring
- FallbackChain: ordered execution with retries and backoff
- DeadLetterQueue: capture requests whose whole chain failed
- IdempotencyStore: execute a request at most once
"""
from routekit.resilience.circuit_breaker import (
    BreakerRegistry,
    CircuitBreaker,
    CircuitState,
    call_maybe_async,
)
from routekit.resilience.dlq import DeadLetter, DeadLetterQueue
from routekit.resilience.fallback import Attempt, FallbackChain, FallbackOutcome, RetryPolicy
from routekit.resilience.health import HealthTracker, ProviderHealth
from routekit.resilience.idempotency import (
    IdempotencyRecord,
    IdempotencyStatus,
    IdempotencyStore,
    generate_idempotency_key,
)

__all__ = [
    # Breakers
    "BreakerRegistry",
    "CircuitBreaker",
    "CircuitState",
    "call_maybe_async",
    # DLQ
    "DeadLetter",
    "DeadLetterQueue",
    # Fallback
    "Attempt",
    "FallbackChain",
    "FallbackOutcome",
    "RetryPolicy",
    # Health
    "HealthTracker",
    "ProviderHealth",
    # Idempotency
    "IdempotencyRecord",
    "IdempotencyStatus",
    "IdempotencyStore",
    "generate_idempotency_key",
]
