"""Shared test fixtures for PMP-Engine."""

import os
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient


ADMIN_KEY = "test-admin-key"
IP_SALT = "test-ip-salt"
TURNSTILE_SECRET = "test-turnstile-secret"

# Ordinary prose over 120 characters; passes every acceptance rule.
CONFESSION = (
    "I once told my whole team that I had read the quarterly report cover to "
    "cover, but I only skimmed the charts on the train home that night."
)


@pytest.fixture
def admin_key():
    return ADMIN_KEY


@pytest.fixture
def confession_text():
    return CONFESSION


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["PMP_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["PMP_ADMIN_KEY"] = ADMIN_KEY
    os.environ["PMP_IP_HASH_SALT"] = IP_SALT
    os.environ["PMP_TURNSTILE_SECRET"] = TURNSTILE_SECRET
    os.environ.pop("PMP_CURRENT_LOTTERY_ID", None)

    # Clear caches and singletons so new env vars take effect
    from pmp_engine.common.config import get_settings
    get_settings.cache_clear()

    from pmp_engine.deps import reset_singletons
    reset_singletons()

    from pmp_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from pmp_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def captcha_ok():
    """Turnstile answers 'success' for every token."""
    from pmp_engine.confessions.captcha import CaptchaResult, TurnstileVerifier

    mock = AsyncMock(return_value=CaptchaResult(True))
    with patch.object(TurnstileVerifier, "verify", mock):
        yield mock


@pytest.fixture
def admin_headers():
    return {"X-PMP-Admin-Key": ADMIN_KEY}
