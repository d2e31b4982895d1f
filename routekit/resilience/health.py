"""
Routekit Health Tracking

Observed outcomes per provider/channel feed back into routing scores:
- success rate, smoothed toward the configured prior so a fresh provider
  is not judged on its first two calls
- EWMA latency
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass
class ProviderHealth:
    """Health metrics for one candidate."""
    name: str
    total: int = 0
    successes: int = 0
    failures: int = 0
    ewma_latency_ms: Optional[float] = None
    last_success: datetime | None = None
    last_failure: datetime | None = None
    last_error: str | None = None

    @property
    def observed_success_rate(self) -> Optional[float]:
        if self.total == 0:
            return None
        return self.successes / self.total

    def to_dict(self) -> dict[str, Any]:
        rate = self.observed_success_rate
        return {
            "name": self.name,
            "total": self.total,
            "successes": self.successes,
            "failures": self.failures,
            "success_rate": round(rate, 4) if rate is not None else None,
            "ewma_latency_ms": round(self.ewma_latency_ms, 1) if self.ewma_latency_ms is not None else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "last_error": self.last_error,
        }


class HealthTracker:
    """In-memory health store keyed by candidate name."""

    def __init__(self, latency_alpha: float = 0.2):
        if not 0.0 < latency_alpha <= 1.0:
            raise ValueError("latency_alpha must be within (0, 1]")
        self.latency_alpha = latency_alpha
        self._health: dict[str, ProviderHealth] = {}

    def get(self, name: str) -> ProviderHealth:
        if name not in self._health:
            self._health[name] = ProviderHealth(name=name)
        return self._health[name]

    def _observe_latency(self, health: ProviderHealth, latency_ms: Optional[float]) -> None:
        if latency_ms is None:
            return
        if health.ewma_latency_ms is None:
            health.ewma_latency_ms = latency_ms
        else:
            a = self.latency_alpha
            health.ewma_latency_ms = a * latency_ms + (1 - a) * health.ewma_latency_ms

    def record_success(self, name: str, latency_ms: Optional[float] = None) -> None:
        health = self.get(name)
        health.total += 1
        health.successes += 1
        health.last_success = datetime.utcnow()
        self._observe_latency(health, latency_ms)

    def record_failure(self, name: str, error: str = "", latency_ms: Optional[float] = None) -> None:
        health = self.get(name)
        health.total += 1
        health.failures += 1
        health.last_failure = datetime.utcnow()
        health.last_error = error or None
        self._observe_latency(health, latency_ms)

    def success_rate(self, name: str, prior: float, prior_weight: float = 10.0) -> float:
        """Observed rate blended with a prior worth prior_weight observations."""
        health = self._health.get(name)
        if health is None or health.total == 0:
            return prior
        return (health.successes + prior * prior_weight) / (health.total + prior_weight)

    def latency_ms(self, name: str, default: float) -> float:
        health = self._health.get(name)
        if health is None or health.ewma_latency_ms is None:
            return default
        return health.ewma_latency_ms

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {name: h.to_dict() for name, h in sorted(self._health.items())}
