"""
auth/tokens.py -- Signed, time-bounded bearer tokens (the token codec).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), email, role, iat,
       exp, typ and jti. Verification raises InvalidToken on any failure --
       bad signature, malformed structure, wrong token type, or past expiry.
       No leeway is configured, so exp is enforced to the second.

  typ claim: "access" or "refresh". Access and refresh tokens are signed with
       independent secrets, and the type is checked on decode as well, so a
       refresh token can never be presented as an access token (or the other
       way round) even if an operator configures the same secret for both.

  jti claim: 128 random bits per token. Two tokens minted for the same user
       within the same second would otherwise be byte-identical, which would
       make a rotated refresh token indistinguishable from its replacement.

  Secrets are passed in, never read from settings here. core.config resolves
  them once into AuthConfig and SessionManager / the request middleware hand
  them to this module.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import InvalidToken
from auth.models import AuthenticatedIdentity, TokenClaims

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"

# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def sign_token(claims: TokenClaims, secret: str, ttl: timedelta, token_type: str = ACCESS) -> str:
    """Encode a signed JWT for the given identity claims.

    Args:
        claims:     Subject, email and role to embed.
        secret:     HMAC key. Access and refresh tokens use different keys.
        ttl:        Lifetime; exp = now + ttl.
        token_type: ACCESS or REFRESH, written to the typ claim.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": claims.subject,
        "email": claims.email,
        "role": claims.role,
        "typ": token_type,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_token(token: str, secret: str, token_type: str = ACCESS) -> TokenClaims:
    """Verify a JWT and return its identity claims.

    Raises InvalidToken if the signature does not match, the token is
    malformed or expired, the typ claim is not token_type, or any identity
    claim is missing.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except (JWTError, ValueError) as exc:  # ValueError: UnicodeEncodeError on unencodable input
        raise InvalidToken(str(exc)) from exc

    if payload.get("typ") != token_type:
        raise InvalidToken("Unexpected token type.")
    subject = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    if not all(isinstance(v, str) and v for v in (subject, email, role)):
        raise InvalidToken("Token is missing identity claims.")
    return TokenClaims(subject=subject, email=email, role=role)


def verify_access_token(token: str, secret: str) -> AuthenticatedIdentity:
    """Turn an inbound access token into the caller's identity.

    This is the single verification hook used by the request middleware in
    auth.dependencies. It performs no I/O.
    """
    claims = decode_token(token, secret, ACCESS)
    return AuthenticatedIdentity(id=claims.subject, email=claims.email, role=claims.role)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class TokenCodec:
    """A secret, lifetime and token type bound together.

    SessionManager holds two of these, one per token kind:
        access = TokenCodec(cfg.access_secret, cfg.access_ttl, ACCESS)
        refresh = TokenCodec(cfg.refresh_secret, cfg.refresh_ttl, REFRESH)
    """

    def __init__(self, secret: str, ttl: timedelta, token_type: str) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty.")
        self._secret = secret
        self.ttl = ttl
        self.token_type = token_type

    def sign(self, claims: TokenClaims) -> str:
        return sign_token(claims, self._secret, self.ttl, self.token_type)

    def verify(self, token: str) -> TokenClaims:
        return decode_token(token, self._secret, self.token_type)
