"""Payments API router.

- POST /route — rank providers for a payment without charging it
- POST /process — charge through the ranked chain with fallback
- GET /providers — profiles with observed health and breaker state

Routing and execution errors are mapped to HTTP responses by the app's
exception handlers. Gateways are registered on app.state.payment_gateways.
"""
from typing import Mapping

from fastapi import APIRouter, Depends, Request

from api.middleware import get_current_tenant
from verticals.payments.models import PaymentRequest
from verticals.payments.routing import PaymentGateway, PaymentRouter

router = APIRouter()


def get_payment_router(request: Request) -> PaymentRouter:
    return request.app.state.payment_router


def get_payment_gateways(request: Request) -> Mapping[str, PaymentGateway]:
    return request.app.state.payment_gateways


@router.post("/route")
async def route_payment(
    payment: PaymentRequest,
    payments: PaymentRouter = Depends(get_payment_router),
):
    """Return the ranked provider chain with per-criterion scores."""
    decision = payments.route(payment)
    return {**decision.to_dict(), "tenant_id": get_current_tenant()}


@router.post("/process")
async def process_payment(
    payment: PaymentRequest,
    payments: PaymentRouter = Depends(get_payment_router),
    gateways: Mapping[str, PaymentGateway] = Depends(get_payment_gateways),
):
    """Charge once per idempotency key; a completed key replays its result."""
    result = await payments.process(payment, gateways, tenant_id=get_current_tenant())
    return result.model_dump(mode="json")


@router.get("/providers")
async def list_providers(payments: PaymentRouter = Depends(get_payment_router)):
    """Configured providers with observed health and breaker state."""
    health = payments.health.snapshot()
    breakers = payments.breakers.snapshot()
    return {
        "providers": [
            {
                "name": p.name,
                "currencies": list(p.currencies),
                "countries": list(p.countries),
                "methods": [m.value for m in p.methods],
                "fee_percent": str(p.fee_percent),
                "fixed_fee": str(p.fixed_fee),
                "enabled": p.enabled,
                "health": health.get(p.name),
                "circuit": breakers.get(p.name, {"state": "closed"}),
            }
            for p in payments.providers.values()
        ]
    }
