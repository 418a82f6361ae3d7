"""Admin authentication and client identity extraction."""

import hmac

from fastapi import Header, HTTPException, Request


async def require_admin_key(
    x_pmp_admin_key: str = Header(..., alias="X-PMP-Admin-Key"),
) -> str:
    """FastAPI dependency that validates the admin key from header."""
    from pmp_engine.common.config import get_settings

    settings = get_settings()
    if not hmac.compare_digest(x_pmp_admin_key.encode(), settings.admin_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_pmp_admin_key


def get_client_ip(request: Request) -> str:
    """Best-effort client IP: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
