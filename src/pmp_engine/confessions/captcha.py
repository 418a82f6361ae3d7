"""HTTP client for Cloudflare Turnstile token verification."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from pmp_engine.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class CaptchaResult:
    valid: bool
    error: Optional[str] = None


class TurnstileVerifier:
    """Calls Turnstile's siteverify endpoint and reduces the answer to yes/no."""

    def __init__(self, secret: str, verify_url: str, timeout: float = 10.0):
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout

    async def verify(self, token: str, remote_ip: str | None = None) -> CaptchaResult:
        if not self.secret:
            raise ConfigurationError("TURNSTILE secret not configured")

        payload = {"secret": self.secret, "response": token}
        if remote_ip and remote_ip != "unknown":
            payload["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.verify_url, json=payload)
                data = resp.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Turnstile verification request failed")
            return CaptchaResult(False, "Verification request failed")

        if data.get("success") is True:
            return CaptchaResult(True)

        codes = data.get("error-codes") or []
        logger.warning("Turnstile verification failed: %s", codes)
        return CaptchaResult(False, ", ".join(codes) or "Verification failed")
