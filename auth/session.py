"""
auth/session.py -- Register / login / refresh / logout and refresh-token rotation.

SessionManager is the only place that combines the three collaborators:
  UserDirectory     -- user lookups and refresh-hash writes (auth/directory.py)
  CredentialHasher  -- one-way digests of passwords and refresh tokens
  TokenCodec (x2)   -- one for access tokens, one for refresh tokens

Rotation and replay:
  Each user has a single refresh-hash slot. Every login and every refresh
  writes the digest of the freshly issued refresh token into that slot, so the
  previous refresh token stops matching even though its signature and expiry
  are still valid. Presenting it again (a replay) fails the digest check and
  raises InvalidRefreshToken. Logout empties the slot.

Failure semantics:
  Every method either returns a complete result or raises an AuthError before
  any write. The refresh digest is persisted before a result is returned, so a
  caller never holds a refresh token the store does not know about.

Layer rule: imports from auth/ and core/ only.
"""

from __future__ import annotations

import logging

from auth.directory import UserDirectory
from auth.errors import DuplicateEmail, InvalidCredentials, InvalidRefreshToken, InvalidToken
from auth.hashing import CredentialHasher
from auth.models import (
    AuthResult,
    LogoutResult,
    NewUser,
    RegisterInput,
    TokenClaims,
    TokenPair,
    User,
    UserView,
)
from auth.tokens import ACCESS, REFRESH, TokenCodec
from core.config import AuthConfig

logger = logging.getLogger("sessiongate.auth")


class SessionManager:
    """Credential verification and token lifecycle.

    Usage:
        manager = SessionManager(store, CredentialHasher(), get_settings().auth_config())
        result = manager.login("a@x.com", "longenough1")
        result = manager.refresh(result.tokens.refresh_token)
        manager.logout(result.user.id)
    """

    def __init__(self, directory: UserDirectory, hasher: CredentialHasher, config: AuthConfig) -> None:
        self.directory = directory
        self.hasher = hasher
        self.access_codec = TokenCodec(config.access_secret, config.access_ttl, ACCESS)
        self.refresh_codec = TokenCodec(config.refresh_secret, config.refresh_ttl, REFRESH)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, data: RegisterInput) -> AuthResult:
        """Create an account and open its first session.

        Raises DuplicateEmail if the email is already registered. Unlike
        login, this does reveal that the email exists.
        """
        if self.directory.find_by_email(data.email) is not None:
            raise DuplicateEmail()

        fields = NewUser(
            email=data.email,
            password_hash=self.hasher.hash(data.password),
            role=data.role,
            branch=data.branch,
            display_name=data.display_name,
            phone_number=data.phone_number,
        )
        # Tokens are signed against the pre-assigned id; the account and its
        # refresh digest are then written together or not at all.
        tokens = self._issue_tokens(TokenClaims(subject=fields.id, email=fields.email, role=fields.role))
        fields.refresh_token_hash = self.hasher.hash(tokens.refresh_token)
        user = self.directory.create(fields)
        logger.info("Registered user %s (role=%s)", user.id, user.role)
        return AuthResult(user=UserView.from_user(user), tokens=tokens)

    def login(self, email: str, password: str) -> AuthResult:
        """Verify a password and open a new session, replacing any existing one.

        Unknown email and wrong password raise the same InvalidCredentials,
        and both paths spend one bcrypt verification.
        """
        user = self.directory.find_by_email(email)
        if user is None:
            self.hasher.burn(password)
            raise InvalidCredentials()
        if not self.hasher.verify(user.password_hash, password):
            raise InvalidCredentials()

        tokens = self._issue_tokens(_claims_for(user))
        self.directory.set_refresh_token_hash(user.id, self.hasher.hash(tokens.refresh_token))
        logger.info("User %s logged in", user.id)
        return AuthResult(user=UserView.from_user(user), tokens=tokens)

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new token pair and rotate the session.

        Raises InvalidRefreshToken when the token does not verify, its user is
        gone or logged out, or it is not the most recently issued refresh token
        for that user (it was already exchanged, or a newer login replaced it).
        """
        try:
            claims = self.refresh_codec.verify(refresh_token)
        except InvalidToken as exc:
            raise InvalidRefreshToken() from exc

        user = self.directory.find_one(claims.subject)
        if user is None or user.refresh_token_hash is None:
            logger.warning("Refresh rejected: no active session for subject %s", claims.subject)
            raise InvalidRefreshToken()

        if not self.hasher.verify(user.refresh_token_hash, refresh_token):
            logger.warning("Refresh rejected: stale or replayed refresh token for user %s", user.id)
            raise InvalidRefreshToken()

        tokens = self._issue_tokens(_claims_for(user))
        rotated = self.directory.swap_refresh_token_hash(
            user.id,
            expected=user.refresh_token_hash,
            digest=self.hasher.hash(tokens.refresh_token),
        )
        if not rotated:
            # Another request rotated or cleared the session since we read it.
            logger.warning("Refresh rejected: concurrent rotation for user %s", user.id)
            raise InvalidRefreshToken()
        return AuthResult(user=UserView.from_user(user), tokens=tokens)

    def logout(self, user_id: str) -> LogoutResult:
        """Invalidate the user's refresh token. Idempotent.

        Access tokens already handed out stay valid until they expire; there
        is no server-side access-token revocation.
        """
        self.directory.clear_refresh_token_hash(user_id)
        logger.info("User %s logged out", user_id)
        return LogoutResult(success=True)

    # ------------------------------------------------------------------
    # Token issuance
    # ------------------------------------------------------------------

    def _issue_tokens(self, claims: TokenClaims) -> TokenPair:
        return TokenPair(
            access_token=self.access_codec.sign(claims),
            refresh_token=self.refresh_codec.sign(claims),
        )


def _claims_for(user: User) -> TokenClaims:
    return TokenClaims(subject=user.id, email=user.email, role=user.role)
