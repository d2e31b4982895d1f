"""Tenant scoping middleware using ContextVar.

Reads the tenant from the X-Tenant-ID header (or the first subdomain
segment). The value lives in a ContextVar and is bound into the structlog
context, so routers, fallback chains and DLQ entries can pick it up with
get_current_tenant() and every log line for the request carries it.
"""

from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from routekit.observability import bind_context, unbind_context

DEFAULT_TENANT = "default"

_current_tenant: ContextVar[str] = ContextVar("current_tenant", default=DEFAULT_TENANT)


def get_current_tenant() -> str:
    """Return the tenant ID for the current request::

        tenant = get_current_tenant()
        await payments.process(request, gateways, tenant_id=tenant)
    """
    return _current_tenant.get()


def resolve_tenant(request: Request) -> str:
    """X-Tenant-ID header, then first subdomain of a 3+ label host, then "default"."""
    tenant_id = request.headers.get("X-Tenant-ID")
    if not tenant_id:
        host = request.headers.get("host", "").split(":")[0]
        parts = host.split(".")
        if len(parts) > 2 and not host.replace(".", "").isdigit():
            tenant_id = parts[0]
    return tenant_id or DEFAULT_TENANT


class TenantMiddleware(BaseHTTPMiddleware):
    """Scope each request to a tenant for its whole lifetime."""

    async def dispatch(self, request: Request, call_next) -> Response:
        tenant_id = resolve_tenant(request)
        token = _current_tenant.set(tenant_id)
        bind_context(tenant_id=tenant_id)
        try:
            response = await call_next(request)
            response.headers["X-Tenant-ID"] = tenant_id
            return response
        finally:
            unbind_context("tenant_id")
            _current_tenant.reset(token)
