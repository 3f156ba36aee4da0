"""
auth/hashing.py -- One-way hashing for passwords and refresh tokens.

Security design decisions:
  bcrypt, called directly (no passlib wrapper). passlib's internal wrap-bug
       detection builds a password longer than 72 bytes, which bcrypt 4.x
       rejects with an explicit error.

  SHA-256 pre-hash. bcrypt only looks at the first 72 bytes of its input and
       bcrypt >= 4.1 refuses longer inputs outright. Refresh tokens are JWTs
       several hundred bytes long whose first 72 bytes (header + start of the
       payload) are identical for every token issued to the same user, so
       hashing them raw would make every refresh token verify against every
       other one. The secret is therefore reduced to base64(SHA-256(secret)),
       44 ASCII bytes with no NULs, before bcrypt sees it. Passwords go through
       the same path, which also removes the silent 72-byte truncation.

  Salt per call. bcrypt.gensalt() draws a fresh salt, so hashing the same
       secret twice gives two different digests that both verify.

  Verification never raises for a wrong secret. A corrupt digest makes bcrypt
       raise ValueError; that is reported as a failed verification.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger("sessiongate.auth")

DEFAULT_ROUNDS = 12


def _prehash(secret: str) -> bytes:
    return base64.b64encode(hashlib.sha256(secret.encode("utf-8")).digest())


def hash_secret(secret: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt digest of the given secret."""
    return bcrypt.hashpw(_prehash(secret), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_secret(digest: str, secret: str) -> bool:
    """Return True if the secret matches the digest. False on mismatch or a malformed digest."""
    try:
        return bcrypt.checkpw(_prehash(secret), digest.encode("utf-8"))
    except ValueError:
        logger.warning("Stored digest is malformed; treating as verification failure")
        return False


class CredentialHasher:
    """Hash/verify collaborator handed to SessionManager.

    Wraps the module functions with a fixed bcrypt cost factor. Tests build
    one with rounds=4 (bcrypt's minimum) to keep the suite fast.

    Usage:
        hasher = CredentialHasher(rounds=12)
        digest = hasher.hash("correct horse")
        hasher.verify(digest, "correct horse")  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Timing equalization dummy digest. Computed once per hasher so the
        # first failed login is not measurably slower than later ones.
        self._dummy_digest = hash_secret("sessiongate_timing_dummy", rounds)

    def hash(self, secret: str) -> str:
        return hash_secret(secret, self.rounds)

    def verify(self, digest: str, secret: str) -> bool:
        return verify_secret(digest, secret)

    def burn(self, secret: str) -> None:
        """Spend one verification's worth of work and discard the result.

        Called when a login names an unknown email, so the response time does
        not reveal whether the account exists.
        """
        verify_secret(self._dummy_digest, secret)
