"""PMP-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "ip_hash_salt": "insecure-ip-salt-change-me",
    "admin_key": "insecure-admin-key-change-me",
}


class PMPSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PMP_")

    environment: str = "development"

    # Mixed into every IP digest; rotating it makes old guard records unmatchable.
    ip_hash_salt: str = "insecure-ip-salt-change-me"
    admin_key: str = "insecure-admin-key-change-me"

    # CAPTCHA (Cloudflare Turnstile)
    turnstile_secret: str = ""
    turnstile_verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
    captcha_timeout: float = 10.0

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/pmp.db"

    # API
    api_title: str = "PMP-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Lottery used by /unlock when the request names none
    current_lottery_id: str = ""

    # Submission guard
    ip_daily_limit: int = 3
    device_daily_limit: int = 2
    cooldown_minutes: int = 10
    duplicate_window_hours: int = 24
    unlock_hourly_limit: int = 30

    # Tickets
    ticket_max_attempts: int = 10

    # Browsing / draws
    browse_default_limit: int = 100
    browse_max_limit: int = 500
    draw_max_count: int = 1000

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"PMP_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secrets; set PMP_IP_HASH_SALT and "
                "PMP_ADMIN_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> PMPSettings:
    settings = PMPSettings()
    settings.validate_for_production()
    return settings
