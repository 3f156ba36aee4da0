"""
auth/errors.py -- Typed failures raised by the auth core.

Every rejected path in SessionManager raises one of these. The API layer maps
them onto the standard error envelope using the code / status_code attributes,
so route handlers never translate auth failures by hand.

Request-body validation errors are deliberately NOT part of this hierarchy:
they are pydantic errors raised before the core is invoked (HTTP 422).
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth failures surfaced to the caller."""

    code: str = "auth_error"
    message: str = "Authentication failed."
    status_code: int = 401

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateEmail(AuthError):
    """Registration attempted with an email already on file."""

    code = "duplicate_email"
    message = "Email already in use."
    status_code = 409


class InvalidCredentials(AuthError):
    """Unknown email OR wrong password. One signal for both, so emails cannot be enumerated."""

    code = "invalid_credentials"
    message = "Invalid credentials."


class InvalidRefreshToken(AuthError):
    """Bad signature, expired, no active session, or rotated-out (replayed) token."""

    code = "invalid_refresh_token"
    message = "Invalid refresh token."


class InvalidToken(AuthError):
    """Token failed signature, structure, type or expiry checks."""

    code = "invalid_token"
    message = "Invalid token."
