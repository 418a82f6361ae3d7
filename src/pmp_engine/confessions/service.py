"""Confession service — acceptance flow, browsing, and the vote ledger."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pmp_engine.common.config import PMPSettings
from pmp_engine.common.database import insert_for
from pmp_engine.common.exceptions import NotFoundError, StorageError, ValidationError
from pmp_engine.common.models import utcnow
from pmp_engine.confessions.captcha import TurnstileVerifier
from pmp_engine.confessions.models import ConfessionModel, VoteModel
from pmp_engine.confessions.validation import validate_confession
from pmp_engine.guard.hashing import IdentityHashes, compute_identity
from pmp_engine.guard.service import SubmissionGuard
from pmp_engine.tickets.service import TicketService

logger = logging.getLogger(__name__)

ALREADY_VOTED = "You have already used your vote."


@dataclass
class SubmissionReceipt:
    """What an accepted confession hands back to the caller."""
    code: str
    confession_id: str
    hashes: IdentityHashes


@dataclass
class VoteOutcome:
    ok: bool
    message: Optional[str] = None


@dataclass
class BrowsePage:
    confessions: list[dict[str, Any]] = field(default_factory=list)
    voted_confession_id: Optional[str] = None


class ConfessionService:
    """Confession acceptance, listing and voting."""

    def __init__(
        self,
        settings: PMPSettings,
        guard: SubmissionGuard,
        tickets: TicketService,
        captcha: TurnstileVerifier | None = None,
    ):
        self.settings = settings
        self.guard = guard
        self.tickets = tickets
        self.captcha = captcha

    # ── Acceptance ──

    async def accept(
        self,
        session: AsyncSession,
        text: str,
        captcha_token: str,
        fingerprint: str,
        client_ip: str,
        now: datetime | None = None,
    ) -> SubmissionReceipt:
        """Validate, guard, store a confession and issue its ticket.

        The guard record is NOT appended here; the caller does that once this
        session has committed (see ``SubmissionGuard.record_best_effort``).
        """
        if not text or not captcha_token or not fingerprint:
            raise ValidationError("Missing required fields")

        if self.captcha is not None:
            verdict = await self.captcha.verify(captcha_token, remote_ip=client_ip)
            if not verdict.valid:
                raise ValidationError(
                    f"Invalid verification token: {verdict.error or 'Verification failed'}"
                )

        check = validate_confession(text)
        if not check.valid:
            raise ValidationError(check.message)

        hashes = compute_identity(
            client_ip, fingerprint, text, self.settings.ip_hash_salt,
        )
        await self.guard.enforce(session, hashes, now=now)

        try:
            confession = await self.submit(session, text, hashes.text_hash)
        except SQLAlchemyError as exc:
            logger.exception("Database error saving confession")
            raise StorageError("Failed to save confession") from exc
        code = await self.tickets.issue(session)
        logger.info("Confession %s accepted", confession.id)
        return SubmissionReceipt(code=code, confession_id=confession.id, hashes=hashes)

    async def submit(
        self, session: AsyncSession, text: str, text_hash: str,
    ) -> ConfessionModel:
        confession = ConfessionModel(text=text.strip(), text_hash=text_hash)
        session.add(confession)
        await session.flush()
        return confession

    # ── Reading ──

    def clamp_window(self, offset: int, limit: int | None) -> tuple[int, int]:
        if limit is None or limit < 1:
            limit = self.settings.browse_default_limit
        return max(0, offset), min(limit, self.settings.browse_max_limit)

    async def list_page(
        self, session: AsyncSession, offset: int = 0, limit: int | None = None,
    ) -> list[ConfessionModel]:
        """Newest first, bounded window."""
        offset, limit = self.clamp_window(offset, limit)
        result = await session.execute(
            select(ConfessionModel)
            .order_by(ConfessionModel.created_at.desc(), ConfessionModel.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def vote_counts(
        self, session: AsyncSession, confession_ids: list[str],
    ) -> dict[str, int]:
        if not confession_ids:
            return {}
        result = await session.execute(
            select(VoteModel.confession_id, func.count(VoteModel.id))
            .where(VoteModel.confession_id.in_(confession_ids))
            .group_by(VoteModel.confession_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def voted_confession_id(
        self, session: AsyncSession, ticket_code: str,
    ) -> Optional[str]:
        result = await session.execute(
            select(VoteModel.confession_id).where(VoteModel.ticket_code == ticket_code)
        )
        return result.scalar_one_or_none()

    async def browse(
        self,
        session: AsyncSession,
        code: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> BrowsePage:
        """A page of confessions annotated with votes, for a ticket holder."""
        ticket_code = await self.tickets.ensure_ticket(session, code)
        confessions = await self.list_page(session, offset, limit)
        counts = await self.vote_counts(session, [c.id for c in confessions])
        voted_id = await self.voted_confession_id(session, ticket_code)
        return BrowsePage(
            confessions=[
                {
                    "id": c.id,
                    "text": c.text,
                    "created_at": c.created_at,
                    "vote_count": counts.get(c.id, 0),
                    "voted_by_me": c.id == voted_id,
                }
                for c in confessions
            ],
            voted_confession_id=voted_id,
        )

    # ── Voting ──

    async def cast_vote(
        self, session: AsyncSession, code: str, confession_id: str,
    ) -> VoteOutcome:
        """Record the ticket's single vote.

        A second vote, including the loser of a concurrent race, inserts
        nothing against the unique ``ticket_code`` index and reports
        "already voted".
        """
        ticket_code = await self.tickets.ensure_ticket(session, code)

        confession = await session.get(ConfessionModel, confession_id) if confession_id else None
        if confession is None:
            raise NotFoundError("Confession not found.")

        try:
            result = await session.execute(
                insert_for(session, VoteModel)
                .values(ticket_code=ticket_code, confession_id=confession_id, created_at=utcnow())
                .on_conflict_do_nothing(index_elements=["ticket_code"])
                .returning(VoteModel.id)
            )
        except SQLAlchemyError as exc:
            logger.exception("Database error recording vote")
            raise StorageError("Failed to record vote") from exc
        if result.scalar_one_or_none() is None:
            return VoteOutcome(False, ALREADY_VOTED)
        return VoteOutcome(True)
