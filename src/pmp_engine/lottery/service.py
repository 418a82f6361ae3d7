"""Lottery service — operator rounds, winner draws and the claim gate."""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pmp_engine.common.config import PMPSettings
from pmp_engine.common.database import insert_for
from pmp_engine.common.exceptions import NotFoundError, StorageError, ValidationError
from pmp_engine.common.models import as_utc, generate_uuid, utcnow
from pmp_engine.guard.hashing import hash_ip
from pmp_engine.guard.service import UnlockGuard
from pmp_engine.lottery.models import LotteryModel, LotteryWinnerModel
from pmp_engine.tickets.models import TicketModel
from pmp_engine.tickets.validator import normalize_ticket_code, validate_ticket_code

logger = logging.getLogger(__name__)

GRANTED = "granted"
NOT_WINNER = "not_winner"
ALREADY_CLAIMED = "already_claimed"

_MESSAGES = {
    GRANTED: "ACCESS GRANTED",
    NOT_WINNER: "The archive remains silent.",
    ALREADY_CLAIMED: "Already claimed.",
}


@dataclass
class DrawResult:
    lottery: LotteryModel
    winners: list[dict[str, Any]] = field(default_factory=list)
    seed: Optional[str] = None


@dataclass
class ClaimOutcome:
    status: str
    message: str
    lottery_name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == GRANTED


@dataclass
class LotteryStatus:
    lottery: LotteryModel
    winners: list[LotteryWinnerModel]

    @property
    def claimed_count(self) -> int:
        return sum(1 for w in self.winners if w.claimed_at is not None)

    @property
    def fully_claimed(self) -> bool:
        return bool(self.winners) and self.claimed_count == len(self.winners)


def _outcome(status: str, lottery_name: str | None = None) -> ClaimOutcome:
    return ClaimOutcome(status, _MESSAGES[status], lottery_name)


class LotteryService:
    """Lottery rounds: creation, additive draws, one-time claims."""

    def __init__(self, settings: PMPSettings, unlock_guard: UnlockGuard):
        self.settings = settings
        self.unlock_guard = unlock_guard

    # ── Lotteries ──

    async def create_lottery(self, session: AsyncSession, name: str) -> LotteryModel:
        if not name or not isinstance(name, str) or not name.strip():
            raise ValidationError("Lottery name is required")
        lottery = LotteryModel(name=name.strip())
        session.add(lottery)
        await session.flush()
        logger.info("Lottery %s created", lottery.id)
        return lottery

    async def get_lottery(
        self, session: AsyncSession, lottery_id: str,
    ) -> LotteryModel | None:
        if not lottery_id:
            return None
        return await session.get(LotteryModel, lottery_id)

    async def get_status(self, session: AsyncSession, lottery_id: str) -> LotteryStatus:
        lottery = await self.get_lottery(session, lottery_id)
        if lottery is None:
            raise NotFoundError("Lottery not found")
        result = await session.execute(
            select(LotteryWinnerModel)
            .where(LotteryWinnerModel.lottery_id == lottery_id)
            .order_by(LotteryWinnerModel.created_at, LotteryWinnerModel.ticket_code)
        )
        return LotteryStatus(lottery=lottery, winners=list(result.scalars().all()))

    # ── Draws ──

    async def draw(
        self,
        session: AsyncSession,
        lottery_id: str,
        count: int,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        seed: str | None = None,
    ) -> DrawResult:
        """Pick up to ``count`` new winners among tickets not yet drawn for this lottery.

        Draws are additive: earlier winners stay and are excluded from the pool.
        ``count`` is a maximum; a smaller pool yields fewer winners. With a
        ``seed`` the draw is reproducible from the same ticket population.
        """
        max_count = self.settings.draw_max_count
        if count < 1 or count > max_count:
            raise ValidationError(f"Winner count must be between 1 and {max_count}")

        lottery = await self.get_lottery(session, lottery_id)
        if lottery is None:
            raise NotFoundError("Lottery not found")

        query = select(TicketModel.code)
        if date_from is not None:
            query = query.where(TicketModel.created_at >= as_utc(date_from))
        if date_to is not None:
            query = query.where(TicketModel.created_at <= as_utc(date_to))
        candidates = list((await session.execute(query)).scalars().all())
        if not candidates:
            raise ValidationError("No tickets found")

        existing = await session.execute(
            select(LotteryWinnerModel.ticket_code).where(
                LotteryWinnerModel.lottery_id == lottery_id
            )
        )
        already_won = set(existing.scalars().all())
        pool = sorted(code for code in candidates if code not in already_won)
        if not pool:
            raise ValidationError("No available tickets (all already selected)")

        rng = random.Random(seed) if seed is not None else random.SystemRandom()
        rng.shuffle(pool)
        selected = pool[:min(count, len(pool))]

        now = utcnow()
        rows = [
            {
                "id": generate_uuid(),
                "lottery_id": lottery_id,
                "ticket_code": code,
                "created_at": now,
            }
            for code in selected
        ]
        try:
            result = await session.execute(
                insert_for(session, LotteryWinnerModel)
                .values(rows)
                .on_conflict_do_nothing(index_elements=["lottery_id", "ticket_code"])
                .returning(LotteryWinnerModel.ticket_code)
            )
        except SQLAlchemyError as exc:
            logger.exception("Database error storing winners for lottery %s", lottery_id)
            raise StorageError("Failed to store winners") from exc
        inserted = list(result.scalars().all())

        logger.info(
            "Drew %d winner(s) for lottery %s",
            len(inserted), lottery_id,
            extra={"lottery_id": lottery_id, "pool_size": len(pool), "seed": seed},
        )
        return DrawResult(
            lottery=lottery,
            winners=[
                {
                    "lottery_id": lottery_id,
                    "ticket_code": code,
                    "claimed_at": None,
                    "created_at": now,
                }
                for code in inserted
            ],
            seed=seed,
        )

    # ── Claims ──

    async def find_winner(
        self, session: AsyncSession, lottery_id: str, ticket_code: str,
    ) -> LotteryWinnerModel | None:
        result = await session.execute(
            select(LotteryWinnerModel).where(
                LotteryWinnerModel.lottery_id == lottery_id,
                LotteryWinnerModel.ticket_code == ticket_code,
            )
        )
        return result.scalar_one_or_none()

    async def claim(
        self,
        session: AsyncSession,
        code: str,
        lottery_id: str,
        client_ip: str,
        now: datetime | None = None,
    ) -> ClaimOutcome:
        """Redeem a winning ticket once.

        Unknown lotteries and losing codes look identical to the caller.
        """
        normalized = normalize_ticket_code(code)
        if not validate_ticket_code(normalized):
            raise ValidationError("Invalid ticket code format")
        if not lottery_id:
            raise ValidationError("Lottery ID not specified")

        now = as_utc(now) if now else utcnow()
        ip_hash = hash_ip(client_ip, self.settings.ip_hash_salt)
        await self.unlock_guard.check_and_record(session, ip_hash, now=now)

        lottery = await self.get_lottery(session, lottery_id)
        lottery_name = lottery.name if lottery else "Lottery"

        winner = await self.find_winner(session, lottery_id, normalized)
        if winner is None:
            return _outcome(NOT_WINNER)
        if winner.claimed_at is not None:
            return _outcome(ALREADY_CLAIMED)

        # Compare-and-set: only a still-unclaimed row is stamped.
        try:
            updated = await session.execute(
                update(LotteryWinnerModel)
                .where(
                    LotteryWinnerModel.lottery_id == lottery_id,
                    LotteryWinnerModel.ticket_code == normalized,
                    LotteryWinnerModel.claimed_at.is_(None),
                )
                .values(claimed_at=now)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            logger.exception("Database error claiming prize for lottery %s", lottery_id)
            raise StorageError("Failed to record claim") from exc
        if updated.rowcount != 1:
            return _outcome(ALREADY_CLAIMED)

        logger.info("Lottery %s prize claimed", lottery_id, extra={"lottery_id": lottery_id})
        return _outcome(GRANTED, lottery_name)
