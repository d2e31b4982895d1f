"""
Routekit Observability — structlog logging and OpenTelemetry tracing.
"""
from routekit.observability.structured_logger import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from routekit.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    "get_tracer",
    "setup_tracing",
]
