"""Pydantic schemas for lottery endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LotteryCreate(BaseModel):
    name: str = ""


class LotteryResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class DrawRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=1000)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    seed: Optional[str] = None


class WinnerResponse(BaseModel):
    lottery_id: str
    ticket_code: str
    claimed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DrawResponse(BaseModel):
    lottery: LotteryResponse
    winners_selected: int
    winners: list[WinnerResponse]
    seed: Optional[str] = None


class LotteryStatusResponse(BaseModel):
    lottery: LotteryResponse
    winners: list[WinnerResponse]
    claimed_count: int
    fully_claimed: bool


class UnlockRequest(BaseModel):
    code: str = ""
    lottery_id: Optional[str] = None


class UnlockResponse(BaseModel):
    ok: bool
    message: str
    lottery_name: Optional[str] = None
