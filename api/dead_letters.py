"""Dead letter API router.

- GET / — pending letters, oldest first
- GET /{letter_id} — one letter with its full attempt log
- POST /{letter_id}/resolve — close a letter after handling it
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from routekit.resilience import DeadLetterQueue

router = APIRouter()


class ResolveRequest(BaseModel):
    resolution: str = ""


def get_dlq(request: Request) -> DeadLetterQueue:
    return request.app.state.dlq


@router.get("")
async def list_dead_letters(
    operation: Optional[str] = None,
    tenant_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    dlq: DeadLetterQueue = Depends(get_dlq),
):
    letters = dlq.pending(operation=operation, tenant_id=tenant_id, limit=limit)
    return {"letters": [letter.to_dict() for letter in letters], "stats": dlq.stats()}


@router.get("/{letter_id}")
async def get_dead_letter(letter_id: str, dlq: DeadLetterQueue = Depends(get_dlq)):
    letter = dlq.get(letter_id)
    if letter is None:
        raise HTTPException(status_code=404, detail=f"Dead letter {letter_id} not found")
    return letter.to_dict()


@router.post("/{letter_id}/resolve")
async def resolve_dead_letter(
    letter_id: str,
    body: ResolveRequest,
    dlq: DeadLetterQueue = Depends(get_dlq),
):
    letter = dlq.resolve(letter_id, resolution=body.resolution)
    if letter is None:
        raise HTTPException(status_code=404, detail=f"Dead letter {letter_id} not found")
    return letter.to_dict()
