"""Test the HTTP API."""
import json

import pytest
from fastapi.testclient import TestClient

from api.main import app
from routekit.errors import CircuitOpenError, ProviderError


@pytest.fixture
def client(monkeypatch, skills_dir):
    monkeypatch.setenv("ROUTEKIT_SKILLS_DIR", str(skills_dir))
    monkeypatch.setenv("ROUTEKIT_JSON_LOGS", "false")
    monkeypatch.setenv("ROUTEKIT_MAX_RETRIES", "0")
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client_without_catalog(monkeypatch):
    monkeypatch.delenv("ROUTEKIT_SKILLS_DIR", raising=False)
    with TestClient(app) as client:
        yield client


def test_root_and_health(client):
    assert client.get("/").json()["name"] == "Routekit"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert set(health["circuits"]) == {"payments", "notifications"}
    assert health["dlq"]["total"] == 0


def test_route_payment(client):
    resp = client.post(
        "/api/payments/route",
        json={"amount": "100.00", "currency": "usd", "country": "us", "method": "card"},
        headers={"X-Tenant-ID": "acme"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["primary"] == "stripe"
    assert data["fallbacks"] == ["paypal"]
    assert data["tenant_id"] == "acme"
    assert resp.headers["X-Tenant-ID"] == "acme"


def test_route_payment_no_provider(client):
    resp = client.post(
        "/api/payments/route",
        json={"amount": "100.00", "currency": "USD", "country": "US", "method": "upi"},
    )
    assert resp.status_code == 422
    assert set(resp.json()["rejected"]) == {"stripe", "razorpay", "paypal"}


def test_route_payment_validation(client):
    resp = client.post("/api/payments/route", json={"amount": "-5", "currency": "USD", "country": "US"})
    assert resp.status_code == 422


def test_list_providers(client):
    providers = client.get("/api/payments/providers").json()["providers"]
    assert {p["name"] for p in providers} == {"stripe", "razorpay", "paypal"}
    assert all(p["circuit"]["state"] == "closed" for p in providers)


def test_plan_notification(client):
    resp = client.post(
        "/api/notifications/plan",
        json={
            "notification": {"user_id": "u1", "title": "Order shipped"},
            "preference": {"user_id": "u1", "contacts": {"email": "ana@example.com"}},
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["strategy"] == "fallback"
    assert set(data["channels"]) == {"email", "in_app"}


def test_plan_notification_no_channel(client):
    resp = client.post(
        "/api/notifications/plan",
        json={
            "notification": {"user_id": "u1", "title": "Order shipped"},
            "preference": {"user_id": "u1", "channels": ["sms"]},
        },
    )
    assert resp.status_code == 422
    assert resp.json()["rejected"]["sms"] == ["No phone on file"]


def test_empty_inbox(client):
    assert client.get("/api/notifications/inbox/u1").json() == {"user_id": "u1", "messages": []}


def test_skill_search(client):
    resp = client.get("/api/skills/search", params={"q": "upi india", "top_k": 2})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results[0]["slug"] == "razorpay-upi"
    assert len(results) <= 2


def test_skill_categories_and_lookup(client):
    categories = client.get("/api/skills/categories").json()["categories"]
    assert categories == [{"name": "notifications", "count": 1}, {"name": "payments", "count": 2}]
    assert client.get("/api/skills/twilio-sms").json()["name"] == "twilio-sms"
    assert client.get("/api/skills/missing").status_code == 404


def test_skills_without_catalog(client_without_catalog):
    assert client_without_catalog.get("/api/skills/categories").status_code == 503


# ---------------------------------------------------------------------------
# Payment processing
# ---------------------------------------------------------------------------

USD_CARD = {"amount": "100.00", "currency": "USD", "country": "US", "method": "card"}


def ok_gateway(provider, request):
    return f"txn-{provider}"


def unavailable_gateway(provider, request):
    raise ProviderError(provider, "gateway timeout")


def declining_gateway(provider, request):
    raise ProviderError(provider, "card declined", retryable=False, status_code=402)


def test_process_payment(client):
    client.app.state.payment_gateways = {"stripe": ok_gateway, "paypal": ok_gateway}
    resp = client.post("/api/payments/process", json=USD_CARD)
    assert resp.status_code == 200
    data = resp.json()
    assert data["provider"] == "stripe"
    assert data["transaction_id"] == "txn-stripe"
    assert data["fee"] == "3.20"
    assert data["fallback_used"] is False


def test_process_payment_without_gateways(client):
    resp = client.post("/api/payments/process", json=USD_CARD)
    assert resp.status_code == 422
    assert resp.json()["rejected"]["stripe"] == ["No gateway configured"]


def test_process_payment_exhausted_is_dead_lettered(client):
    client.app.state.payment_gateways = {"stripe": unavailable_gateway, "paypal": unavailable_gateway}
    resp = client.post("/api/payments/process", json=USD_CARD, headers={"X-Tenant-ID": "acme"})
    assert resp.status_code == 503
    assert [a["candidate"] for a in resp.json()["attempts"]] == ["stripe", "paypal"]

    listing = client.get("/api/dead-letters").json()
    assert listing["stats"]["failures_by_candidate"] == {"stripe": 1, "paypal": 1}
    letter = listing["letters"][0]
    assert letter["operation"] == "payment"
    assert letter["tenant_id"] == "acme"
    assert letter["last_errors"]["paypal"] == "paypal: gateway timeout"

    resolved = client.post(f"/api/dead-letters/{letter['id']}/resolve", json={"resolution": "refunded"})
    assert resolved.json()["resolved"] is True
    assert client.get("/api/dead-letters").json()["letters"] == []
    assert client.get("/health").json()["dlq"]["resolved"] == 1


def test_process_payment_decline(client):
    client.app.state.payment_gateways = {"stripe": declining_gateway, "paypal": ok_gateway}
    resp = client.post("/api/payments/process", json=USD_CARD)
    assert resp.status_code == 402
    assert resp.json()["provider"] == "stripe"


def test_process_payment_idempotent(client):
    client.app.state.payment_gateways = {"stripe": ok_gateway}
    body = {**USD_CARD, "idempotency_key": "order-7"}
    first = client.post("/api/payments/process", json=body).json()
    second = client.post("/api/payments/process", json=body).json()
    assert second["transaction_id"] == first["transaction_id"]
    assert second["replayed"] is True


def test_process_payment_in_progress_key(client):
    client.app.state.payment_gateways = {"stripe": ok_gateway}
    client.app.state.payment_router.idempotency.reserve("order-8", operation="payment")
    resp = client.post("/api/payments/process", json={**USD_CARD, "idempotency_key": "order-8"})
    assert resp.status_code == 409
    assert resp.json()["idempotency_key"] == "order-8"


def test_unknown_dead_letter(client):
    assert client.get("/api/dead-letters/missing").status_code == 404
    assert client.post("/api/dead-letters/missing/resolve", json={}).status_code == 404


@pytest.mark.asyncio
async def test_circuit_open_maps_to_503_with_retry_after():
    handler = app.exception_handlers[CircuitOpenError]
    resp = await handler(None, CircuitOpenError("stripe", 12.5))
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "12"
    assert json.loads(resp.body)["retry_after"] == 12.5


@pytest.mark.asyncio
async def test_transient_provider_error_maps_to_502():
    handler = app.exception_handlers[ProviderError]
    resp = await handler(None, ProviderError("webhook", "HTTP 503", status_code=503))
    assert resp.status_code == 502
    assert json.loads(resp.body)["provider"] == "webhook"


# ---------------------------------------------------------------------------
# Notification delivery
# ---------------------------------------------------------------------------

def test_deliver_to_inbox(client):
    resp = client.post(
        "/api/notifications/deliver",
        json={
            "notification": {"id": "n1", "user_id": "u1", "title": "Order shipped"},
            "preference": {"user_id": "u1"},
        },
    )
    assert resp.status_code == 200
    report = resp.json()
    assert report["channels"] == ["in_app"]
    assert report["message_ids"] == {"in_app": "n1"}

    messages = client.get("/api/notifications/inbox/u1").json()["messages"]
    assert [m["title"] for m in messages] == ["Order shipped"]

    assert client.post("/api/notifications/inbox/u1/n1/read").json()["read"] is True
    assert client.get("/api/notifications/inbox/u1", params={"unread_only": True}).json()["messages"] == []
    assert client.post("/api/notifications/inbox/u1/nope/read").status_code == 404


def test_deliver_without_sender(client):
    resp = client.post(
        "/api/notifications/deliver",
        json={
            "notification": {"user_id": "u1", "title": "Code 1234"},
            "preference": {"user_id": "u1", "channels": ["sms"], "contacts": {"phone": "+15550100"}},
        },
    )
    assert resp.status_code == 422
    assert resp.json()["rejected"] == {"sms": ["No sender configured"]}
