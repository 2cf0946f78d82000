"""
SessionManager: register, login, refresh and revoke.

Combines the argon2 hasher, the JWT codec and the refresh token store.
It keeps no mutable state of its own; the signing secret is read once from
the app config and every durable change goes through DBStorage.

Every authentication failure leaves here as ``Unauthenticated`` with a
fixed message, so the HTTP layer cannot tell an unknown email from a wrong
password, or a revoked refresh token from an expired or unknown one.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from models.base_model import utcnow
from models.refresh_token import RefreshTokenStatus
from models.user import User
from utils.exceptions import TokenError, Unauthenticated
from utils.refresh_tokens import REFRESH_TOKEN_TTL, RefreshTokenStore
from utils.security import burn_password_check, hash_password, make_jwt, validate_jwt, verify_password

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TOKEN_TTL = timedelta(hours=1)

BAD_LOGIN = "incorrect email or password"
BAD_TOKEN = "invalid or expired token"


@dataclass(frozen=True)
class AccessGrant:
    access_token: str
    expires_in: timedelta


@dataclass(frozen=True)
class LoginResult:
    account: User
    access_token: str
    refresh_token: str
    expires_in: timedelta


class SessionManager:
    def __init__(
        self,
        storage,
        secret: str,
        access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL,
        refresh_token_ttl: timedelta = REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("a signing secret is required")
        if access_token_ttl <= timedelta(0):
            access_token_ttl = DEFAULT_ACCESS_TOKEN_TTL
        self.storage = storage
        self.refresh_tokens = RefreshTokenStore(storage, ttl=refresh_token_ttl)
        self.access_token_ttl = access_token_ttl
        self._secret = secret
        self._clock = clock

    def _access_ttl(self, requested: timedelta | None) -> timedelta:
        """Non-positive or missing means the default; longer than the default is clamped."""
        if requested is None or requested <= timedelta(0):
            return self.access_token_ttl
        return min(requested, self.access_token_ttl)

    def _issue(self, account_id, ttl: timedelta) -> str:
        return make_jwt(account_id, self._secret, ttl, now=self._clock())

    def register(self, email: str, password: str) -> User:
        user = self.storage.create_account(email, hash_password(password))
        logger.info("Registered account %s", user.id)
        return user

    def login(self, email: str, password: str, expires_in: timedelta | None = None) -> LoginResult:
        user = self.storage.get_account_by_email(email)
        if user is None:
            burn_password_check(password)
            logger.info("Login rejected")
            raise Unauthenticated(BAD_LOGIN)
        if not verify_password(password, user.hashed_password):
            logger.info("Login rejected for account %s", user.id)
            raise Unauthenticated(BAD_LOGIN)

        ttl = self._access_ttl(expires_in)
        access_token = self._issue(user.id, ttl)
        refresh_token = self.refresh_tokens.generate()
        self.refresh_tokens.persist(refresh_token, user.id, issued_at=self._clock())
        logger.info("Account %s logged in", user.id)
        return LoginResult(
            account=user, access_token=access_token, refresh_token=refresh_token, expires_in=ttl
        )

    def refresh(self, refresh_token: str) -> AccessGrant:
        record = self.refresh_tokens.lookup(refresh_token)
        if record is None:
            logger.debug("Refresh rejected: unknown token")
            raise Unauthenticated(BAD_TOKEN)
        status = record.status(self._clock())
        if status is not RefreshTokenStatus.ACTIVE:
            logger.debug("Refresh rejected for account %s: token %s", record.user_id, status.value)
            raise Unauthenticated(BAD_TOKEN)

        ttl = self.access_token_ttl
        return AccessGrant(access_token=self._issue(record.user_id, ttl), expires_in=ttl)

    def revoke(self, refresh_token: str) -> None:
        self.refresh_tokens.revoke(refresh_token, now=self._clock())

    def authenticate(self, access_token: str) -> uuid.UUID:
        """Return the account id an access token was issued for."""
        try:
            return validate_jwt(access_token, self._secret)
        except TokenError as exc:
            logger.debug("Access token rejected: %s", exc.__class__.__name__)
            raise Unauthenticated(BAD_TOKEN) from exc

    def update_credentials(self, account_id, email: str, password: str) -> User:
        user = self.storage.update_account(account_id, email, hash_password(password))
        if user is None:
            # Token outlived its account
            raise Unauthenticated(BAD_TOKEN)
        logger.info("Updated credentials for account %s", user.id)
        return user

    def upgrade_account(self, account_id) -> bool:
        upgraded = self.storage.upgrade_account(account_id)
        if upgraded:
            logger.info("Account %s upgraded to Chirpy Red", account_id)
        return upgraded
