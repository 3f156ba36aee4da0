"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, the session manager and the routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass
class User:
    """A registered account as persisted by the user directory.

    password_hash and refresh_token_hash are one-way digests; the plaintext
    password and refresh token are never stored. refresh_token_hash is None
    when the user has no active session (never logged in, or logged out).
    Only one refresh token per user is valid at a time.
    """

    id: str
    email: str
    password_hash: str
    role: str
    branch: str
    display_name: str | None = None
    phone_number: str | None = None
    refresh_token_hash: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class NewUser:
    """Fields accepted by UserDirectory.create().

    The password is already hashed. id is generated by the caller so tokens can be
    signed for the account before it is written; refresh_token_hash lets the
    account and its first session land in a single insert.
    """

    email: str
    password_hash: str
    role: str
    branch: str
    display_name: str | None = None
    phone_number: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    refresh_token_hash: str | None = None


@dataclass(frozen=True)
class UserView:
    """The client-safe subset of a User. No password or refresh-token hash."""

    id: str
    branch: str
    created_at: str | None
    updated_at: str | None
    display_name: str | None
    email: str
    phone_number: str | None
    role: str

    @classmethod
    def from_user(cls, user: User) -> UserView:
        return cls(
            id=user.id,
            branch=user.branch,
            created_at=user.created_at,
            updated_at=user.updated_at,
            display_name=user.display_name,
            email=user.email,
            phone_number=user.phone_number,
            role=user.role,
        )


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by both access and refresh tokens."""

    subject: str
    email: str
    role: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Caller identity recovered from a verified access token. Never persisted."""

    id: str
    email: str
    role: str


@dataclass(frozen=True)
class AuthResult:
    """Successful outcome of register, login and refresh."""

    user: UserView
    tokens: TokenPair


@dataclass(frozen=True)
class RegisterInput:
    branch: str
    email: str
    role: str
    password: str
    display_name: str | None = None
    phone_number: str | None = None


@dataclass(frozen=True)
class LogoutResult:
    success: bool = True
