"""Ticket API router — contact registration and ticket checks."""

from fastapi import APIRouter

from pmp_engine.tickets.schemas import (
    ContactRequest,
    ContactResponse,
    TicketCheckRequest,
    TicketCheckResponse,
)

router = APIRouter()


def _get_service():
    from pmp_engine.deps import get_ticket_service
    return get_ticket_service()


def _get_db():
    from pmp_engine.deps import get_db
    return get_db()


@router.post("/contact", response_model=ContactResponse)
async def record_contact(body: ContactRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.record_contact(
            session, body.code, email=body.email, instagram=body.instagram,
        )
    return ContactResponse(ok=True)


@router.post("/confessions/validate-ticket", response_model=TicketCheckResponse)
async def validate_ticket(body: TicketCheckRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.ensure_ticket(session, body.code)
    return TicketCheckResponse(ok=True)
