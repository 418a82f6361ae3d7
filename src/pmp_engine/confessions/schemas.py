"""Pydantic schemas for confession endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ConfessRequest(BaseModel):
    confession_text: str = ""
    turnstile_token: str = ""
    fp_hash: str = ""


class ConfessResponse(BaseModel):
    code: str


class ConfessionItem(BaseModel):
    id: str
    text: str
    created_at: datetime
    vote_count: int = 0
    voted_by_me: bool = False


class BrowseResponse(BaseModel):
    ok: bool = True
    confessions: list[ConfessionItem] = Field(default_factory=list)
    voted_confession_id: Optional[str] = None


class VoteRequest(BaseModel):
    code: str
    confession_id: str


class VoteResponse(BaseModel):
    ok: bool
    message: Optional[str] = None
