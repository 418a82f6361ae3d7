"""Dependency injection singletons for PMP-Engine."""

from pmp_engine.common.config import get_settings
from pmp_engine.common.database import DatabaseManager
from pmp_engine.confessions.captcha import TurnstileVerifier
from pmp_engine.confessions.service import ConfessionService
from pmp_engine.guard.service import SubmissionGuard, UnlockGuard
from pmp_engine.lottery.service import LotteryService
from pmp_engine.tickets.service import TicketService

_db: DatabaseManager | None = None
_guard: SubmissionGuard | None = None
_tickets: TicketService | None = None
_captcha: TurnstileVerifier | None = None
_confessions: ConfessionService | None = None
_lottery: LotteryService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_guard() -> SubmissionGuard:
    global _guard
    if _guard is None:
        _guard = SubmissionGuard(get_settings())
    return _guard


def get_ticket_service() -> TicketService:
    global _tickets
    if _tickets is None:
        _tickets = TicketService(get_settings())
    return _tickets


def get_captcha_verifier() -> TurnstileVerifier:
    global _captcha
    if _captcha is None:
        settings = get_settings()
        _captcha = TurnstileVerifier(
            settings.turnstile_secret,
            settings.turnstile_verify_url,
            timeout=settings.captcha_timeout,
        )
    return _captcha


def get_confession_service() -> ConfessionService:
    global _confessions
    if _confessions is None:
        _confessions = ConfessionService(
            get_settings(),
            guard=get_guard(),
            tickets=get_ticket_service(),
            captcha=get_captcha_verifier(),
        )
    return _confessions


def get_lottery_service() -> LotteryService:
    global _lottery
    if _lottery is None:
        _lottery = LotteryService(get_settings(), UnlockGuard(get_settings()))
    return _lottery


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _guard, _tickets, _captcha, _confessions, _lottery
    _db = None
    _guard = None
    _tickets = None
    _captcha = None
    _confessions = None
    _lottery = None
