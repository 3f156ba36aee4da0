"""Unit tests for auth/hashing.py -- password and refresh-token digests.

Covers:
- verify(hash(p), p) is True; any other secret is False
- hash() is salted: two digests of the same secret differ, both verify
- Secrets longer than bcrypt's 72-byte window are fully significant
- Malformed digests verify as False instead of raising
- burn() runs without raising
"""

from auth.hashing import CredentialHasher, hash_secret, verify_secret


def test_hash_then_verify_matches(hasher: CredentialHasher) -> None:
    digest = hasher.hash("longenough1")
    assert hasher.verify(digest, "longenough1")


def test_wrong_secret_does_not_verify(hasher: CredentialHasher) -> None:
    digest = hasher.hash("longenough1")
    assert not hasher.verify(digest, "longenough2")
    assert not hasher.verify(digest, "")
    assert not hasher.verify(digest, "LONGENOUGH1")


def test_digest_is_not_the_plaintext(hasher: CredentialHasher) -> None:
    digest = hasher.hash("longenough1")
    assert "longenough1" not in digest
    assert digest.startswith("$2")


def test_hash_is_salted(hasher: CredentialHasher) -> None:
    first = hasher.hash("longenough1")
    second = hasher.hash("longenough1")
    assert first != second
    assert hasher.verify(first, "longenough1")
    assert hasher.verify(second, "longenough1")


def test_long_secrets_differ_after_72_bytes(hasher: CredentialHasher) -> None:
    """Two secrets sharing a 100-byte prefix must not verify against each other.

    Refresh tokens for one user share a long JWT header/payload prefix, so a
    raw bcrypt hash would treat them as equal.
    """
    prefix = "x" * 100
    digest = hasher.hash(prefix + "A")
    assert hasher.verify(digest, prefix + "A")
    assert not hasher.verify(digest, prefix + "B")


def test_unicode_secret_round_trips(hasher: CredentialHasher) -> None:
    digest = hasher.hash("pässwörd-密码")
    assert hasher.verify(digest, "pässwörd-密码")


def test_malformed_digest_is_false_not_error() -> None:
    assert verify_secret("not-a-bcrypt-hash", "anything") is False
    assert verify_secret("", "anything") is False


def test_module_functions_honour_rounds() -> None:
    digest = hash_secret("longenough1", rounds=4)
    assert digest.startswith("$2b$04$")
    assert verify_secret(digest, "longenough1")


def test_burn_returns_none(hasher: CredentialHasher) -> None:
    assert hasher.burn("whatever") is None
