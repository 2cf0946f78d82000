"""
Error taxonomy for the session/authentication core.

The HTTP layer (api/errors.py) decides status codes; everything raised
here is safe to show to a client except the crypto and store errors,
which are reported as a generic internal error.
"""


class AuthError(Exception):
    """Base class for every error raised by the auth core."""

    message = "Authentication error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class Unauthenticated(AuthError):
    """Bad credentials or an unusable token. Always shown uniformly."""

    message = "Unauthorized"


class MissingCredential(Unauthenticated):
    """No Authorization header, or one with the wrong scheme label."""

    message = "Missing or invalid Authorization header"


class InvalidInput(AuthError):
    message = "Invalid input"


class TokenError(AuthError):
    message = "Invalid token"


class InvalidToken(TokenError):
    """Bad signature, wrong secret, or a malformed token."""


class ExpiredToken(TokenError):
    """Signature is valid but the token is past its expiry."""

    message = "Token expired"


class CryptoError(AuthError):
    message = "Cryptographic failure"


class HashingError(CryptoError):
    message = "Could not hash password"


class RandomnessError(CryptoError):
    message = "Could not generate random token"


class StoreError(AuthError):
    message = "Storage error"


class DuplicateEmailError(StoreError):
    message = "Email already registered"
