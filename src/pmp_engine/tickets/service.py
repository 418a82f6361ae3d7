"""Ticket service — issuance with collision retry, lookups, contact details."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pmp_engine.common.config import PMPSettings
from pmp_engine.common.database import insert_for
from pmp_engine.common.exceptions import (
    NotFoundError,
    StorageError,
    TicketIssuanceError,
    ValidationError,
)
from pmp_engine.common.models import utcnow
from pmp_engine.tickets.generator import generate_ticket_code
from pmp_engine.tickets.models import TicketContactModel, TicketModel
from pmp_engine.tickets.validator import normalize_ticket_code, validate_ticket_code

logger = logging.getLogger(__name__)

UNKNOWN_TICKET = "Invalid or unknown ticket."


class TicketService:
    """Ticket issuance and lookup."""

    def __init__(self, settings: PMPSettings):
        self.settings = settings

    async def issue(self, session: AsyncSession) -> str:
        """Store a fresh, globally unique ticket code and return it.

        The unique index on ``tickets.code`` arbitrates collisions: a code that
        is already taken inserts nothing and a new one is drawn, at most
        ``ticket_max_attempts`` times.
        """
        max_attempts = self.settings.ticket_max_attempts
        for attempt in range(1, max_attempts + 1):
            code = generate_ticket_code()
            stmt = (
                insert_for(session, TicketModel)
                .values(code=code, created_at=utcnow())
                .on_conflict_do_nothing(index_elements=["code"])
                .returning(TicketModel.code)
            )
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as exc:
                logger.exception("Database error inserting ticket")
                raise StorageError("Failed to generate ticket") from exc

            if result.scalar_one_or_none() is not None:
                return code
            logger.warning("Ticket code collision (attempt %d/%d)", attempt, max_attempts)

        logger.error("Gave up issuing a ticket after %d collisions", max_attempts)
        raise TicketIssuanceError()

    async def get(self, session: AsyncSession, code: str) -> TicketModel | None:
        return await session.get(TicketModel, normalize_ticket_code(code))

    async def exists(self, session: AsyncSession, code: str) -> bool:
        return await self.get(session, code) is not None

    async def ensure_ticket(self, session: AsyncSession, code: str) -> str:
        """Return the normalized code of an issued ticket.

        Malformed and unknown codes fail with the same message so callers
        cannot tell which codes exist.
        """
        normalized = normalize_ticket_code(code)
        if not validate_ticket_code(normalized):
            raise ValidationError(UNKNOWN_TICKET)
        if not await self.exists(session, normalized):
            raise ValidationError(UNKNOWN_TICKET)
        return normalized

    # ── Contacts ──

    async def record_contact(
        self,
        session: AsyncSession,
        code: str,
        email: Optional[str] = None,
        instagram: Optional[str] = None,
    ) -> TicketContactModel:
        """Upsert contact details for a ticket; each provided field overwrites."""
        normalized = normalize_ticket_code(code)
        if not validate_ticket_code(normalized):
            raise ValidationError("Invalid ticket code format")

        fields: dict[str, str] = {}
        if email and email.strip():
            fields["email"] = email.strip().lower()
        if instagram:
            handle = instagram.strip()
            if handle.startswith("@"):
                handle = handle[1:]
            if handle:
                fields["instagram"] = handle
        if not fields:
            raise ValidationError("Email or Instagram must be provided")

        if not await self.exists(session, normalized):
            raise NotFoundError("Ticket code not found")

        now = utcnow()
        stmt = (
            insert_for(session, TicketContactModel)
            .values(ticket_code=normalized, updated_at=now, **fields)
            .on_conflict_do_update(
                index_elements=["ticket_code"],
                set_={**fields, "updated_at": now},
            )
        )
        await session.execute(stmt)

        result = await session.execute(
            select(TicketContactModel)
            .where(TicketContactModel.ticket_code == normalized)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
