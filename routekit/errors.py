"""
Routekit error hierarchy.

Everything raised by the decision core derives from RoutekitError so the
HTTP layer can map whole families of failures with one handler.
"""
from __future__ import annotations
from typing import Any


class RoutekitError(Exception):
    """Base class for all routekit errors."""


class ConfigurationError(RoutekitError):
    """Invalid weights, criteria, or environment overrides."""


class CatalogError(RoutekitError):
    """Skills directory is missing or unreadable."""


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

class RoutingError(RoutekitError):
    """A routing decision could not be made."""


class NoEligibleCandidateError(RoutingError):
    """Every candidate was filtered out by eligibility rules."""

    def __init__(self, rejected: dict[str, list[str]], message: str | None = None):
        self.rejected = rejected
        super().__init__(message or f"No eligible candidate ({len(rejected)} rejected)")

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self), "rejected": self.rejected}


class NoEligibleProviderError(NoEligibleCandidateError):
    """No payment provider can handle the request."""


class NoEligibleChannelError(NoEligibleCandidateError):
    """No notification channel can reach the user."""


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class CircuitOpenError(RoutekitError):
    """Call rejected because the candidate's circuit breaker is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' OPEN. Retry after {retry_after:.1f}s")


class ProviderError(RoutekitError):
    """Raised by a gateway or sender.

    retryable=False marks a permanent failure (a card decline, a rejected
    recipient) that must stop the fallback chain instead of falling through.
    """

    def __init__(self, provider: str, message: str, retryable: bool = True, status_code: int | None = None):
        self.provider = provider
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class AllCandidatesFailedError(RoutekitError):
    """Every candidate in a fallback chain failed."""

    def __init__(self, attempts: list, message: str | None = None):
        self.attempts = attempts
        tried = sorted({a.candidate for a in attempts})
        super().__init__(message or f"All candidates failed: {', '.join(tried) or 'none'}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self), "attempts": [a.to_dict() for a in self.attempts]}


class DuplicateRequestError(RoutekitError):
    """An idempotency key is already being processed."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Request with idempotency key {key} is already in progress")
