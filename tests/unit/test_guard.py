"""Tests for the submission guard and the unlock-attempt guard."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from pmp_engine.common.config import PMPSettings
from pmp_engine.common.database import DatabaseManager
from pmp_engine.common.exceptions import RateLimitedError
from pmp_engine.guard.hashing import IdentityHashes
from pmp_engine.guard.models import SubmissionGuardModel, UnlockAttemptModel
from pmp_engine.guard.service import SubmissionGuard, UnlockGuard


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> PMPSettings:
    defaults = {"db_url": "sqlite+aiosqlite://", "ip_hash_salt": "test-salt"}
    defaults.update(overrides)
    return PMPSettings(**defaults)


def ids(ip="ip-x", fp="fp-x", text="text-x") -> IdentityHashes:
    return IdentityHashes(ip_hash=ip, fp_hash=fp, text_hash=text)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def guard():
    return SubmissionGuard(make_settings())


async def _seed(db, guard, *rows):
    """rows: (IdentityHashes, age timedelta)"""
    async with db.get_session() as session:
        for hashes, age in rows:
            await guard.record(session, hashes, created_at=NOW - age)


async def _evaluate(db, guard, hashes):
    async with db.get_session() as session:
        return await guard.evaluate(session, hashes, now=NOW)


class TestIpDailyLimit:
    async def test_fourth_attempt_rejected(self, db, guard):
        await _seed(
            db, guard,
            (ids(fp="fp-1", text="t1"), timedelta(hours=1)),
            (ids(fp="fp-2", text="t2"), timedelta(hours=2)),
            (ids(fp="fp-3", text="t3"), timedelta(hours=3)),
        )
        decision = await _evaluate(db, guard, ids(fp="fp-4", text="t4"))
        assert decision.allowed is False
        assert decision.reason == "Maximum 3 confessions per 24 hours"

    async def test_third_attempt_allowed(self, db, guard):
        await _seed(
            db, guard,
            (ids(fp="fp-1", text="t1"), timedelta(hours=1)),
            (ids(fp="fp-2", text="t2"), timedelta(hours=2)),
        )
        decision = await _evaluate(db, guard, ids(fp="fp-4", text="t4"))
        assert decision.allowed is True
        assert decision.reason is None

    async def test_old_records_ignored(self, db, guard):
        await _seed(
            db, guard,
            (ids(fp="fp-1", text="t1"), timedelta(hours=25)),
            (ids(fp="fp-2", text="t2"), timedelta(hours=26)),
            (ids(fp="fp-3", text="t3"), timedelta(days=3)),
        )
        decision = await _evaluate(db, guard, ids(fp="fp-4", text="t4"))
        assert decision.allowed is True


class TestDeviceDailyLimit:
    async def test_third_from_device_rejected(self, db, guard):
        await _seed(
            db, guard,
            (ids(ip="ip-1", text="t1"), timedelta(hours=1)),
            (ids(ip="ip-2", text="t2"), timedelta(hours=2)),
        )
        decision = await _evaluate(db, guard, ids(ip="ip-3", text="t3"))
        assert decision.allowed is False
        assert decision.reason == "Maximum 2 confessions per 24 hours per device"

    async def test_ip_limit_checked_first(self, db, guard):
        await _seed(
            db, guard,
            (ids(text="t1"), timedelta(hours=1)),
            (ids(text="t2"), timedelta(hours=2)),
            (ids(text="t3"), timedelta(hours=3)),
        )
        decision = await _evaluate(db, guard, ids(text="t4"))
        assert decision.reason == "Maximum 3 confessions per 24 hours"


class TestCooldown:
    async def test_ip_cooldown(self, db, guard):
        await _seed(db, guard, (ids(fp="fp-1", text="t1"), timedelta(minutes=5)))
        decision = await _evaluate(db, guard, ids(fp="fp-2", text="t2"))
        assert decision.allowed is False
        assert decision.reason == "Please wait 10 minutes between submissions"

    async def test_device_cooldown(self, db, guard):
        await _seed(db, guard, (ids(ip="ip-1", text="t1"), timedelta(minutes=9)))
        decision = await _evaluate(db, guard, ids(ip="ip-2", text="t2"))
        assert decision.allowed is False
        assert decision.reason == "Please wait 10 minutes between submissions"

    async def test_cooldown_expires(self, db, guard):
        await _seed(db, guard, (ids(text="t1"), timedelta(minutes=11)))
        decision = await _evaluate(db, guard, ids(text="t2"))
        assert decision.allowed is True

    async def test_configurable_cooldown(self, db):
        guard = SubmissionGuard(make_settings(cooldown_minutes=30))
        await _seed(db, guard, (ids(text="t1"), timedelta(minutes=20)))
        decision = await _evaluate(db, guard, ids(text="t2"))
        assert decision.reason == "Please wait 30 minutes between submissions"


class TestDuplicates:
    async def test_same_device_different_ip(self, db, guard):
        await _seed(db, guard, (ids(ip="ip-1", fp="fp-1", text="same"), timedelta(hours=1)))
        decision = await _evaluate(db, guard, ids(ip="ip-2", fp="fp-1", text="same"))
        assert decision.allowed is False
        assert decision.reason == "Duplicate confession detected"

    async def test_same_ip_different_device(self, db, guard):
        await _seed(db, guard, (ids(ip="ip-1", fp="fp-1", text="same"), timedelta(hours=1)))
        decision = await _evaluate(db, guard, ids(ip="ip-1", fp="fp-2", text="same"))
        assert decision.allowed is False
        assert decision.reason == "Duplicate confession detected"

    async def test_same_text_from_stranger_allowed(self, db, guard):
        await _seed(db, guard, (ids(ip="ip-1", fp="fp-1", text="same"), timedelta(hours=1)))
        decision = await _evaluate(db, guard, ids(ip="ip-2", fp="fp-2", text="same"))
        assert decision.allowed is True

    async def test_duplicate_window(self, db, guard):
        await _seed(db, guard, (ids(text="same"), timedelta(hours=30)))
        decision = await _evaluate(db, guard, ids(text="same"))
        assert decision.allowed is True


class TestEnforceAndRecord:
    async def test_enforce_raises(self, db, guard):
        await _seed(db, guard, (ids(), timedelta(minutes=1)))
        with pytest.raises(RateLimitedError) as exc_info:
            async with db.get_session() as session:
                await guard.enforce(session, ids(text="other"), now=NOW)
        assert "10 minutes" in exc_info.value.message

    async def test_evaluate_is_read_only(self, db, guard):
        await _evaluate(db, guard, ids())
        async with db.get_session() as session:
            count = (await session.execute(
                select(func.count(SubmissionGuardModel.id))
            )).scalar()
        assert count == 0

    async def test_record_best_effort(self, db, guard):
        assert await guard.record_best_effort(db, ids()) is True
        async with db.get_session() as session:
            count = (await session.execute(
                select(func.count(SubmissionGuardModel.id))
            )).scalar()
        assert count == 1

    async def test_record_best_effort_swallows_storage_failure(self, db, guard):
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(SubmissionGuard, "record", side_effect=failure):
            assert await guard.record_best_effort(db, ids()) is False


class TestUnlockGuard:
    async def test_limit(self, db):
        unlock = UnlockGuard(make_settings(unlock_hourly_limit=3))
        for _ in range(3):
            async with db.get_session() as session:
                await unlock.check_and_record(session, "ip-x", now=NOW)
        with pytest.raises(RateLimitedError) as exc_info:
            async with db.get_session() as session:
                await unlock.check_and_record(session, "ip-x", now=NOW)
        assert exc_info.value.message == "Too many unlock attempts. Please try again later."

    async def test_other_ip_unaffected(self, db):
        unlock = UnlockGuard(make_settings(unlock_hourly_limit=1))
        async with db.get_session() as session:
            await unlock.check_and_record(session, "ip-x", now=NOW)
        async with db.get_session() as session:
            await unlock.check_and_record(session, "ip-y", now=NOW)

    async def test_window_is_trailing_hour(self, db):
        unlock = UnlockGuard(make_settings(unlock_hourly_limit=2))
        async with db.get_session() as session:
            await unlock.check_and_record(session, "ip-x", now=NOW - timedelta(minutes=90))
            await unlock.check_and_record(session, "ip-x", now=NOW - timedelta(minutes=70))
        async with db.get_session() as session:
            await unlock.check_and_record(session, "ip-x", now=NOW)
            count = await unlock.attempts_since(session, "ip-x", NOW - timedelta(hours=1))
        assert count == 1

    async def test_does_not_touch_submission_log(self, db):
        unlock = UnlockGuard(make_settings())
        async with db.get_session() as session:
            await unlock.check_and_record(session, "ip-x", now=NOW)
        async with db.get_session() as session:
            subs = (await session.execute(select(func.count(SubmissionGuardModel.id)))).scalar()
            unlocks = (await session.execute(select(func.count(UnlockAttemptModel.id)))).scalar()
        assert (subs, unlocks) == (0, 1)
