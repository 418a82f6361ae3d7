"""Confession API router — submission, browsing and voting."""

from fastapi import APIRouter, Query, Request

from pmp_engine.common.security import get_client_ip
from pmp_engine.confessions.schemas import (
    BrowseResponse,
    ConfessionItem,
    ConfessRequest,
    ConfessResponse,
    VoteRequest,
    VoteResponse,
)

router = APIRouter()


def _get_service():
    from pmp_engine.deps import get_confession_service
    return get_confession_service()


def _get_guard():
    from pmp_engine.deps import get_guard
    return get_guard()


def _get_db():
    from pmp_engine.deps import get_db
    return get_db()


@router.post("/confess", response_model=ConfessResponse)
async def confess(body: ConfessRequest, request: Request):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        receipt = await svc.accept(
            session,
            text=body.confession_text,
            captcha_token=body.turnstile_token,
            fingerprint=body.fp_hash,
            client_ip=get_client_ip(request),
        )
    # Appended after the accept transaction commits; failures are only logged.
    await _get_guard().record_best_effort(db, receipt.hashes)
    return ConfessResponse(code=receipt.code)


@router.get("/confessions", response_model=BrowseResponse)
async def browse(
    code: str = Query(""),
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        page = await svc.browse(session, code, offset=offset, limit=limit)
    return BrowseResponse(
        confessions=[ConfessionItem(**c) for c in page.confessions],
        voted_confession_id=page.voted_confession_id,
    )


@router.post("/confessions/vote", response_model=VoteResponse)
async def vote(body: VoteRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        outcome = await svc.cast_vote(session, body.code, body.confession_id)
    return VoteResponse(ok=outcome.ok, message=outcome.message)
