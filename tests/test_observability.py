"""Test logging processors, tracing and tenant resolution."""
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from starlette.requests import Request

from api.middleware import resolve_tenant
from routekit.observability import bind_context, clear_context, setup_tracing, unbind_context
from routekit.observability.structured_logger import add_app_context, add_trace_context


def test_add_app_context():
    assert add_app_context(None, "info", {"event": "x"})["app"] == "routekit"
    assert add_app_context(None, "info", {"app": "other"})["app"] == "other"


def test_trace_ids_only_inside_span():
    assert "trace_id" not in add_trace_context(None, "info", {})

    tracer = TracerProvider().get_tracer("test")
    with tracer.start_as_current_span("payments.route") as span:
        event = add_trace_context(None, "info", {})
        assert event["trace_id"] == format(span.get_span_context().trace_id, "032x")
        assert len(event["span_id"]) == 16


def test_bind_and_unbind_context():
    clear_context()
    bind_context(tenant_id="acme", request_id="r1")
    assert structlog.contextvars.get_contextvars() == {"tenant_id": "acme", "request_id": "r1"}
    unbind_context("request_id")
    assert structlog.contextvars.get_contextvars() == {"tenant_id": "acme"}
    clear_context()


def _request(headers):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


def test_resolve_tenant():
    assert resolve_tenant(_request({"X-Tenant-ID": "acme"})) == "acme"
    assert resolve_tenant(_request({"host": "globex.routekit.app"})) == "globex"
    assert resolve_tenant(_request({"host": "routekit.app"})) == "default"
    assert resolve_tenant(_request({"host": "127.0.0.1:8000"})) == "default"
    assert resolve_tenant(_request({})) == "default"


def test_setup_tracing_installs_provider_once():
    setup_tracing(service_name="routekit-first")
    provider = trace.get_tracer_provider()
    assert isinstance(provider, TracerProvider)

    setup_tracing(service_name="routekit-second", console=True)
    assert trace.get_tracer_provider() is provider
