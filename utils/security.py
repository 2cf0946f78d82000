"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT access tokens via PyJWT (HS256, one server-held secret)
- Authorization header parsing (Bearer / ApiKey)
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from utils.exceptions import ExpiredToken, HashingError, InvalidToken, MissingCredential

ISSUER = "chirpy"
JWT_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "
API_KEY_PREFIX = "ApiKey "

ph = PasswordHasher()

# Verified against when the account does not exist, so an unknown email
# takes as long as a wrong password.
_DUMMY_HASH = ph.hash("chirpy-dummy-password")


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    try:
        return ph.hash(password)
    except Argon2HashingError as exc:
        raise HashingError() from exc


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def burn_password_check(password: str) -> None:
    """Run a verify that always fails, for the unknown-account branch."""
    verify_password(password, _DUMMY_HASH)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def make_jwt(subject, secret: str, expires_in: timedelta, now: datetime | None = None) -> str:
    """
    Issue a signed access token for ``subject``.
    ``expires_in`` must be positive; picking a default is the caller's job.
    """
    if expires_in <= timedelta(0):
        raise ValueError("expires_in must be a positive duration")
    issued = now or _now()
    payload = {
        "iss": ISSUER,
        "sub": str(subject),
        "iat": int(issued.timestamp()),
        "exp": int((issued + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def validate_jwt(token: str, secret: str) -> uuid.UUID:
    """
    Decode and validate an access token, returning its subject.
    Raises ExpiredToken when the signature is good but exp has passed,
    InvalidToken for everything else.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            issuer=ISSUER,
            options={"require": ["iss", "sub", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}") from exc

    try:
        return uuid.UUID(decoded["sub"])
    except (ValueError, TypeError) as exc:
        raise InvalidToken("Invalid token: subject is not an account id") from exc


def _get_prefixed(headers: Mapping[str, str], prefix: str) -> str:
    auth = headers.get("Authorization")
    if not auth or not auth.startswith(prefix):
        raise MissingCredential()
    return auth[len(prefix):]


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the credential after the literal, case-sensitive ``Bearer `` label."""
    return _get_prefixed(headers, BEARER_PREFIX)


def get_api_key(headers: Mapping[str, str]) -> str:
    return _get_prefixed(headers, API_KEY_PREFIX)
