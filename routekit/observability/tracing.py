"""
Routekit OpenTelemetry Setup

- One span per routing decision (payments.route, notifications.plan, ...)
- One span per fallback chain execution
- Trace ids copied into structured logs
"""
from __future__ import annotations
from typing import Optional
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

TRACER_NAME = "routekit"

_provider: Optional[TracerProvider] = None


def setup_tracing(
    service_name: str = "routekit",
    endpoint: Optional[str] = None,
    console: bool = False,
) -> trace.Tracer:
    """Install a TracerProvider with an OTLP and/or console exporter.

    Installs once per process. Later calls, such as each app startup under
    a test client, reuse the installed provider and ignore their arguments.
    """
    global _provider
    if _provider is not None:
        return trace.get_tracer(TRACER_NAME)

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        _provider = current
        return trace.get_tracer(TRACER_NAME)

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    otlp_endpoint = endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    if console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _provider = provider
    return trace.get_tracer(TRACER_NAME)


def get_tracer() -> trace.Tracer:
    """Routekit tracer. A no-op tracer until setup_tracing() runs."""
    return trace.get_tracer(TRACER_NAME)
