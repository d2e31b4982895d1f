"""
Routekit Dead Letter Queue — requests whose whole fallback chain failed.

A letter is the request payload plus the chain's attempt log. From the log
an operator sees which candidates were tried, which an open breaker
skipped, and the last error each one returned. Letters stay pending until
someone resolves them (after replaying the request by hand, or deciding
not to).
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from routekit.observability import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeadLetter:
    operation: str
    payload: dict[str, Any]
    error: str
    attempts: list[dict[str, Any]] = field(default_factory=list)
    tenant_id: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    failed_at: datetime = field(default_factory=_utcnow)
    resolved_at: Optional[datetime] = None
    resolution: str = ""

    @property
    def resolved(self) -> bool:
        return self.resolved_at is not None

    @property
    def candidates_tried(self) -> list[str]:
        """Candidates in chain order, each listed once."""
        return list(dict.fromkeys(a["candidate"] for a in self.attempts if a.get("candidate")))

    @property
    def skipped(self) -> list[str]:
        return [a["candidate"] for a in self.attempts if a.get("skipped")]

    @property
    def last_errors(self) -> dict[str, str]:
        """Most recent error per candidate, skipped ones included."""
        errors: dict[str, str] = {}
        for a in self.attempts:
            if not a.get("success") and a.get("error"):
                errors[a["candidate"]] = a["error"]
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "tenant_id": self.tenant_id,
            "error": self.error,
            "payload": self.payload,
            "candidates_tried": self.candidates_tried,
            "skipped": self.skipped,
            "last_errors": self.last_errors,
            "attempts": self.attempts,
            "failed_at": self.failed_at.isoformat(),
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution": self.resolution,
        }


class DeadLetterQueue:
    """In-memory, insertion ordered. Swap the dict out for durable storage."""

    def __init__(self):
        self._letters: dict[str, DeadLetter] = {}

    def __len__(self) -> int:
        return len(self._letters)

    def enqueue(
        self,
        operation: str,
        payload: dict[str, Any],
        error: str,
        attempts: Optional[list[dict[str, Any]]] = None,
        tenant_id: str = "",
    ) -> DeadLetter:
        letter = DeadLetter(
            operation=operation,
            payload=payload,
            error=error,
            attempts=list(attempts or []),
            tenant_id=tenant_id,
        )
        self._letters[letter.id] = letter
        logger.warning(
            "dlq.enqueued",
            letter_id=letter.id,
            operation=operation,
            tenant_id=tenant_id,
            candidates=letter.candidates_tried,
            error=error,
        )
        return letter

    def get(self, letter_id: str) -> Optional[DeadLetter]:
        return self._letters.get(letter_id)

    def pending(
        self,
        operation: Optional[str] = None,
        tenant_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[DeadLetter]:
        """Unresolved letters, oldest first."""
        letters = [
            letter for letter in self._letters.values()
            if not letter.resolved
            and (operation is None or letter.operation == operation)
            and (tenant_id is None or letter.tenant_id == tenant_id)
        ]
        return letters[:limit]

    def resolve(self, letter_id: str, resolution: str = "") -> Optional[DeadLetter]:
        """Close a letter. Resolving twice keeps the first resolution."""
        letter = self._letters.get(letter_id)
        if letter is None or letter.resolved:
            return letter
        letter.resolved_at = _utcnow()
        letter.resolution = resolution
        logger.info("dlq.resolved", letter_id=letter_id, operation=letter.operation, resolution=resolution)
        return letter

    def stats(self) -> dict[str, Any]:
        """Counts for /health. failures_by_candidate covers pending letters only."""
        pending = [letter for letter in self._letters.values() if not letter.resolved]
        failures: Counter[str] = Counter()
        for letter in pending:
            failures.update(
                a["candidate"] for a in letter.attempts
                if not a.get("success") and not a.get("skipped")
            )
        return {
            "total": len(self._letters),
            "pending": len(pending),
            "resolved": len(self._letters) - len(pending),
            "by_operation": dict(Counter(letter.operation for letter in pending)),
            "failures_by_candidate": dict(failures),
        }
