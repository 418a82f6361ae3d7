"""Pydantic schemas for ticket endpoints."""

from typing import Optional

from pydantic import BaseModel


class ContactRequest(BaseModel):
    code: str
    email: Optional[str] = None
    instagram: Optional[str] = None


class ContactResponse(BaseModel):
    ok: bool = True


class TicketCheckRequest(BaseModel):
    code: str


class TicketCheckResponse(BaseModel):
    ok: bool
    message: Optional[str] = None
