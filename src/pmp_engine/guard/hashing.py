"""
Identity hashing for abuse guards.

Raw client IPs, device fingerprints and confession text are never compared or
stored; only their SHA-256 digests are.

- IP: sha256(ip + salt), salt held server-side.
- Fingerprint: sha256(fp), unsalted.
- Text: sha256(text.strip()).
"""

import hashlib
from dataclasses import dataclass

from pmp_engine.common.exceptions import ConfigurationError


@dataclass(frozen=True)
class IdentityHashes:
    """Digests identifying one submission attempt."""
    ip_hash: str
    fp_hash: str
    text_hash: str


def sha256_hex(value: str) -> str:
    """Hex SHA-256 of a UTF-8 string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_ip(ip: str, salt: str) -> str:
    if not salt:
        raise ConfigurationError("IP hash salt is not configured")
    return sha256_hex(ip + salt)


def hash_fingerprint(fingerprint: str) -> str:
    return sha256_hex(fingerprint)


def hash_text(text: str) -> str:
    return sha256_hex(text.strip())


def compute_identity(ip: str, fingerprint: str, text: str, salt: str) -> IdentityHashes:
    """Hash all identity signals of a confession attempt."""
    return IdentityHashes(
        ip_hash=hash_ip(ip, salt),
        fp_hash=hash_fingerprint(fingerprint),
        text_hash=hash_text(text),
    )
