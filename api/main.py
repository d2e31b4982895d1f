"""Routekit API — FastAPI entry point.

Registers middleware, routers, error handlers and lifecycle hooks. Each
vertical adds its own router under /api/{vertical}/.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.middleware import TenantMiddleware
from routekit import __version__
from routekit.config import RoutekitConfig
from routekit.errors import (
    AllCandidatesFailedError,
    CircuitOpenError,
    ConfigurationError,
    DuplicateRequestError,
    NoEligibleCandidateError,
    ProviderError,
)
from routekit.observability import configure_logging, get_logger, setup_tracing
from routekit.resilience import DeadLetterQueue
from routekit.search import HybridSearchEngine
from verticals.catalog.catalog import SkillCatalog
from verticals.notifications.config import NotificationRoutingConfig
from verticals.notifications.models import Channel
from verticals.notifications.routing import NotificationRouter
from verticals.notifications.senders import InAppInbox, WebhookSender
from verticals.payments.config import PaymentRoutingConfig
from verticals.payments.routing import PaymentRouter

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:3001"
).split(",")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build routers, queues and the skill catalog for this process."""
    config = RoutekitConfig.from_env()
    configure_logging(
        log_level=config.logging.level,
        json_logs=config.logging.json_logs,
        service_name=config.logging.service_name,
    )
    setup_tracing(
        service_name=config.tracing.service_name,
        endpoint=config.tracing.otlp_endpoint,
        console=config.tracing.console,
    )

    dlq = DeadLetterQueue()
    app.state.config = config
    app.state.dlq = dlq
    app.state.payment_router = PaymentRouter(
        config=PaymentRoutingConfig.from_env(resilience=config.resilience), dlq=dlq,
    )
    app.state.notification_router = NotificationRouter(config=NotificationRoutingConfig.default(), dlq=dlq)

    # Deployments register their payment gateways and channel senders here
    inbox = InAppInbox()
    app.state.inbox = inbox
    app.state.payment_gateways = {}
    app.state.notification_senders = {
        Channel.IN_APP: inbox,
        Channel.WEBHOOK: WebhookSender(secret=os.getenv("ROUTEKIT_WEBHOOK_SECRET", "")),
    }
    app.state.catalog = None

    skills_dir = os.getenv("ROUTEKIT_SKILLS_DIR")
    if skills_dir:
        app.state.catalog = SkillCatalog.from_directory(
            skills_dir, engine=HybridSearchEngine.from_config(config.search),
        )
        logger.info("catalog.loaded", skills_dir=skills_dir, skills=len(app.state.catalog))

    logger.info("api.started", version=__version__)
    yield
    logger.info("api.shutting_down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Routekit",
    description="Multi-criteria routing, hybrid search and resilient fallback for payments, notifications and skills",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Multi-tenant middleware
app.add_middleware(TenantMiddleware)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(NoEligibleCandidateError)
async def no_eligible_handler(request: Request, exc: NoEligibleCandidateError):
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.exception_handler(AllCandidatesFailedError)
async def all_failed_handler(request: Request, exc: AllCandidatesFailedError):
    return JSONResponse(status_code=503, content=exc.to_dict())


@app.exception_handler(CircuitOpenError)
async def circuit_open_handler(request: Request, exc: CircuitOpenError):
    return JSONResponse(
        status_code=503,
        content={"error": str(exc), "retry_after": exc.retry_after},
        headers={"Retry-After": str(max(1, int(exc.retry_after)))},
    )


@app.exception_handler(DuplicateRequestError)
async def duplicate_handler(request: Request, exc: DuplicateRequestError):
    return JSONResponse(status_code=409, content={"error": str(exc), "idempotency_key": exc.key})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    # A permanent decline is the caller's problem, a transient one is upstream's
    status = 502 if exc.retryable else 402
    return JSONResponse(status_code=status, content={"error": str(exc), "provider": exc.provider})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("api.configuration_error", error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Routers (verticals register here)
# ---------------------------------------------------------------------------

from api.dead_letters import router as dead_letters_router  # noqa: E402
from verticals.catalog.router import router as catalog_router  # noqa: E402
from verticals.notifications.router import router as notifications_router  # noqa: E402
from verticals.payments.router import router as payments_router  # noqa: E402

app.include_router(payments_router, prefix="/api/payments", tags=["Payments"])
app.include_router(notifications_router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(catalog_router, prefix="/api/skills", tags=["Skills"])
app.include_router(dead_letters_router, prefix="/api/dead-letters", tags=["Dead letters"])


# ---------------------------------------------------------------------------
# Health & root
# ---------------------------------------------------------------------------

@app.get("/health")
async def health(request: Request):
    state = request.app.state
    return {
        "status": "healthy",
        "version": __version__,
        "circuits": {
            "payments": state.payment_router.breakers.snapshot(),
            "notifications": state.notification_router.breakers.snapshot(),
        },
        "dlq": state.dlq.stats(),
    }


@app.get("/")
async def root():
    return {
        "name": "Routekit",
        "version": __version__,
        "docs": "/docs",
        "verticals": ["payments", "notifications", "skills"],
        "description": "Scored routing with resilient fallback",
    }
