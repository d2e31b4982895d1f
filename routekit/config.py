"""Dataclass-based routekit configuration.

Each concern gets a frozen dataclass with sensible defaults. Verticals
define their own sections (criteria weights, provider tables) next to
their code and reuse ResilienceConfig from here.

Example::

    config = RoutekitConfig.from_env()
    engine = HybridSearchEngine(k=config.search.rrf_k)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from routekit.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchConfig:
    """Hybrid search and fusion settings."""

    rrf_k: int = 60
    dense_weight: float = 0.6
    sparse_weight: float = 0.4
    fusion: str = "rrf"  # rrf | weighted
    embedding_dim: int = 256
    candidate_multiplier: int = 2


@dataclass(frozen=True)
class ResilienceConfig:
    """Circuit breaker, retry and idempotency settings."""

    failure_threshold: int = 5
    recovery_timeout: float = 30.0  # seconds
    max_retries: int = 2
    backoff_base: float = 0.2
    backoff_max: float = 5.0
    idempotency_ttl_seconds: int = 3600


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json_logs: bool = True
    service_name: str = "routekit"


@dataclass(frozen=True)
class TracingConfig:
    service_name: str = "routekit"
    otlp_endpoint: Optional[str] = None
    console: bool = False


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoutekitConfig:
    """Complete configuration for the decision core."""

    search: SearchConfig = field(default_factory=SearchConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @classmethod
    def default(cls) -> "RoutekitConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "ROUTEKIT_") -> "RoutekitConfig":
        """Create config from environment variables.

        Example: ROUTEKIT_RRF_K=30 ROUTEKIT_LOG_LEVEL=DEBUG
        """
        search = SearchConfig(
            rrf_k=env_int(f"{prefix}RRF_K", SearchConfig.rrf_k),
            fusion=os.getenv(f"{prefix}FUSION", SearchConfig.fusion).lower(),
        )
        if search.fusion not in ("rrf", "weighted"):
            raise ConfigurationError(f"{prefix}FUSION must be 'rrf' or 'weighted', got {search.fusion!r}")

        resilience = ResilienceConfig(
            failure_threshold=env_int(f"{prefix}FAILURE_THRESHOLD", ResilienceConfig.failure_threshold),
            recovery_timeout=env_float(f"{prefix}RECOVERY_TIMEOUT", ResilienceConfig.recovery_timeout),
            max_retries=env_int(f"{prefix}MAX_RETRIES", ResilienceConfig.max_retries),
        )

        logging = LoggingConfig(
            level=os.getenv(f"{prefix}LOG_LEVEL", LoggingConfig.level).upper(),
            json_logs=os.getenv(f"{prefix}JSON_LOGS", "true").lower() == "true",
        )

        tracing = TracingConfig(
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
            console=os.getenv(f"{prefix}TRACE_CONSOLE", "false").lower() == "true",
        )

        return cls(search=search, resilience=resilience, logging=logging, tracing=tracing)


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
