"""Submission and unlock guards — rate windows over append-only hash logs."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pmp_engine.common.config import PMPSettings
from pmp_engine.common.exceptions import RateLimitedError
from pmp_engine.common.models import as_utc, utcnow
from pmp_engine.guard.hashing import IdentityHashes
from pmp_engine.guard.models import SubmissionGuardModel, UnlockAttemptModel

logger = logging.getLogger(__name__)

COOLDOWN_REASON = "Please wait {minutes} minutes between submissions"
UNLOCK_LIMIT_REASON = "Too many unlock attempts. Please try again later."


@dataclass
class GuardDecision:
    allowed: bool
    reason: Optional[str] = None


class SubmissionGuard:
    """Decides whether a confession attempt may proceed.

    Evaluation is read-only. Appending the guard record is a separate step the
    caller takes after the confession has been accepted; the two are not
    transactional, so a narrow race may let one extra submission through at a
    limit boundary.
    """

    def __init__(self, settings: PMPSettings):
        self.settings = settings

    async def _count(self, session: AsyncSession, *criteria) -> int:
        result = await session.execute(
            select(func.count(SubmissionGuardModel.id)).where(*criteria)
        )
        return result.scalar() or 0

    async def evaluate(
        self,
        session: AsyncSession,
        hashes: IdentityHashes,
        now: datetime | None = None,
    ) -> GuardDecision:
        """Run the policy checks in order; the first failure wins."""
        now = as_utc(now) if now else utcnow()
        s = self.settings
        day_ago = now - timedelta(hours=24)
        cooldown_start = now - timedelta(minutes=s.cooldown_minutes)
        duplicate_start = now - timedelta(hours=s.duplicate_window_hours)
        recent = SubmissionGuardModel.created_at >= day_ago

        ip_day = await self._count(
            session, SubmissionGuardModel.ip_hash == hashes.ip_hash, recent,
        )
        if ip_day >= s.ip_daily_limit:
            return GuardDecision(
                False, f"Maximum {s.ip_daily_limit} confessions per 24 hours",
            )

        fp_day = await self._count(
            session, SubmissionGuardModel.fp_hash == hashes.fp_hash, recent,
        )
        if fp_day >= s.device_daily_limit:
            return GuardDecision(
                False,
                f"Maximum {s.device_daily_limit} confessions per 24 hours per device",
            )

        cooldown = COOLDOWN_REASON.format(minutes=s.cooldown_minutes)
        in_cooldown = SubmissionGuardModel.created_at >= cooldown_start
        if await self._count(
            session, SubmissionGuardModel.ip_hash == hashes.ip_hash, in_cooldown,
        ):
            return GuardDecision(False, cooldown)
        if await self._count(
            session, SubmissionGuardModel.fp_hash == hashes.fp_hash, in_cooldown,
        ):
            return GuardDecision(False, cooldown)

        duplicates = await self._count(
            session,
            SubmissionGuardModel.text_hash == hashes.text_hash,
            or_(
                SubmissionGuardModel.ip_hash == hashes.ip_hash,
                SubmissionGuardModel.fp_hash == hashes.fp_hash,
            ),
            SubmissionGuardModel.created_at >= duplicate_start,
        )
        if duplicates:
            return GuardDecision(False, "Duplicate confession detected")

        return GuardDecision(True)

    async def enforce(
        self,
        session: AsyncSession,
        hashes: IdentityHashes,
        now: datetime | None = None,
    ) -> None:
        """Like :meth:`evaluate`, but raises RateLimitedError on rejection."""
        decision = await self.evaluate(session, hashes, now=now)
        if not decision.allowed:
            raise RateLimitedError(decision.reason)

    async def record(
        self,
        session: AsyncSession,
        hashes: IdentityHashes,
        created_at: datetime | None = None,
    ) -> SubmissionGuardModel:
        row = SubmissionGuardModel(
            ip_hash=hashes.ip_hash,
            fp_hash=hashes.fp_hash,
            text_hash=hashes.text_hash,
            created_at=as_utc(created_at) if created_at else utcnow(),
        )
        session.add(row)
        await session.flush()
        return row

    async def record_best_effort(self, db, hashes: IdentityHashes) -> bool:
        """Append a guard record in its own session; failures are logged, not raised."""
        try:
            async with db.get_session() as session:
                await self.record(session, hashes)
        except SQLAlchemyError:
            logger.exception("Failed to append submission guard record")
            return False
        return True


class UnlockGuard:
    """Per-IP throttle for claim attempts, kept in its own log."""

    def __init__(self, settings: PMPSettings):
        self.settings = settings

    async def attempts_since(
        self, session: AsyncSession, ip_hash: str, since: datetime,
    ) -> int:
        result = await session.execute(
            select(func.count(UnlockAttemptModel.id)).where(
                UnlockAttemptModel.ip_hash == ip_hash,
                UnlockAttemptModel.created_at >= since,
            )
        )
        return result.scalar() or 0

    async def check_and_record(
        self,
        session: AsyncSession,
        ip_hash: str,
        now: datetime | None = None,
    ) -> None:
        """Reject when the trailing-hour budget is spent, otherwise log this attempt."""
        now = as_utc(now) if now else utcnow()
        count = await self.attempts_since(session, ip_hash, now - timedelta(hours=1))
        if count >= self.settings.unlock_hourly_limit:
            logger.info("Unlock rate limit hit (%d attempts in the last hour)", count)
            raise RateLimitedError(UNLOCK_LIMIT_REASON)
        session.add(UnlockAttemptModel(ip_hash=ip_hash, created_at=now))
        await session.flush()
