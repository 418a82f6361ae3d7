"""Lottery API router — admin rounds and draws, public unlock."""

from fastapi import APIRouter, Depends, Request

from pmp_engine.common.security import get_client_ip, require_admin_key
from pmp_engine.lottery.schemas import (
    DrawRequest,
    DrawResponse,
    LotteryCreate,
    LotteryResponse,
    LotteryStatusResponse,
    UnlockRequest,
    UnlockResponse,
    WinnerResponse,
)

router = APIRouter()


def _get_service():
    from pmp_engine.deps import get_lottery_service
    return get_lottery_service()


def _get_db():
    from pmp_engine.deps import get_db
    return get_db()


# ── Admin ──

@router.post("/lotteries", response_model=LotteryResponse, status_code=201)
async def create_lottery(body: LotteryCreate, _=Depends(require_admin_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        lottery = await svc.create_lottery(session, body.name)
        return LotteryResponse.model_validate(lottery)


@router.get("/lotteries/{lottery_id}", response_model=LotteryStatusResponse)
async def get_lottery(lottery_id: str, _=Depends(require_admin_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        status = await svc.get_status(session, lottery_id)
        return LotteryStatusResponse(
            lottery=LotteryResponse.model_validate(status.lottery),
            winners=[WinnerResponse.model_validate(w) for w in status.winners],
            claimed_count=status.claimed_count,
            fully_claimed=status.fully_claimed,
        )


@router.post("/lotteries/{lottery_id}/draw", response_model=DrawResponse)
async def draw_winners(
    lottery_id: str, body: DrawRequest, _=Depends(require_admin_key),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.draw(
            session,
            lottery_id,
            body.count,
            date_from=body.date_from,
            date_to=body.date_to,
            seed=body.seed,
        )
        return DrawResponse(
            lottery=LotteryResponse.model_validate(result.lottery),
            winners_selected=len(result.winners),
            winners=[WinnerResponse(**w) for w in result.winners],
            seed=result.seed,
        )


# ── Public ──

@router.post("/unlock", response_model=UnlockResponse)
async def unlock(body: UnlockRequest, request: Request):
    from pmp_engine.common.config import get_settings

    svc = _get_service()
    db = _get_db()
    lottery_id = body.lottery_id or get_settings().current_lottery_id
    async with db.get_session() as session:
        outcome = await svc.claim(
            session, body.code, lottery_id, client_ip=get_client_ip(request),
        )
    return UnlockResponse(
        ok=outcome.ok, message=outcome.message, lottery_name=outcome.lottery_name,
    )
