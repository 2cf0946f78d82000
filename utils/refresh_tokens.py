"""
Refresh tokens: opaque 256-bit random strings, checked against the
refresh_tokens table. Tokens are never rotated; a token lives until it is
revoked or its 60-day horizon passes.
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.exceptions import RandomnessError

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 32
REFRESH_TOKEN_TTL = timedelta(days=60)


def make_refresh_token() -> str:
    """Return 32 random bytes as 64 hex characters."""
    try:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)
    except OSError as exc:
        logger.error("Entropy source failed while generating a refresh token")
        raise RandomnessError() from exc


class RefreshTokenStore:
    """Thin adapter over DBStorage; the only rule it owns is the expiry horizon."""

    def __init__(self, storage, ttl: timedelta = REFRESH_TOKEN_TTL):
        self.storage = storage
        self.ttl = ttl

    def generate(self) -> str:
        return make_refresh_token()

    def persist(self, token: str, account_id, issued_at: datetime | None = None) -> RefreshToken:
        issued_at = issued_at or utcnow()
        return self.storage.create_refresh_token(
            token, account_id, expires_at=issued_at + self.ttl, created_at=issued_at
        )

    def lookup(self, token: str) -> RefreshToken | None:
        return self.storage.get_refresh_token(token)

    def revoke(self, token: str, now: datetime | None = None) -> None:
        self.storage.revoke_refresh_token(token, revoked_at=now or utcnow())
