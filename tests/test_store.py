"""Unit tests for auth/store.py -- the SQLAlchemy user directory.

Covers:
- create() assigns an opaque id and timestamps, starts with no refresh hash
- create() raises DuplicateEmail on an existing email, IntegrityError for other constraint failures
- create() keeps a caller-assigned id and first refresh hash
- find_by_email() is exact and case-sensitive; find_one() by id
- set / swap / clear refresh-token hash semantics
- UserStore satisfies the UserDirectory protocol
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.directory import UserDirectory
from auth.errors import DuplicateEmail
from auth.models import NewUser
from auth.store import UserStore


def _new_user(email: str = "a@x.com") -> NewUser:
    return NewUser(
        email=email,
        password_hash="$2b$04$placeholderdigest",
        role="staff",
        branch="north",
        display_name="Ada",
        phone_number="+1 555 0100",
    )


def test_store_is_a_user_directory(store: UserStore) -> None:
    assert isinstance(store, UserDirectory)


class TestCreateAndFind:
    def test_create_returns_stored_user(self, store: UserStore) -> None:
        user = store.create(_new_user())
        assert user.id
        assert user.email == "a@x.com"
        assert user.refresh_token_hash is None
        assert user.created_at == user.updated_at
        assert store.find_one(user.id) == user

    def test_ids_are_unique(self, store: UserStore) -> None:
        first = store.create(_new_user("one@x.com"))
        second = store.create(_new_user("two@x.com"))
        assert first.id != second.id

    def test_duplicate_email_raises(self, store: UserStore) -> None:
        store.create(_new_user())
        with pytest.raises(DuplicateEmail):
            store.create(_new_user())

    def test_other_constraint_failures_are_not_duplicate_email(self, store: UserStore) -> None:
        fields = _new_user()
        fields.branch = None
        with pytest.raises(IntegrityError) as excinfo:
            store.create(fields)
        assert not isinstance(excinfo.value, DuplicateEmail)
        assert store.find_by_email("a@x.com") is None

    def test_create_stores_given_id_and_refresh_hash(self, store: UserStore) -> None:
        fields = _new_user()
        fields.refresh_token_hash = "refresh-digest"
        user = store.create(fields)
        assert user.id == fields.id
        assert store.find_one(fields.id).refresh_token_hash == "refresh-digest"

    def test_find_by_email_is_case_sensitive(self, store: UserStore) -> None:
        store.create(_new_user("Mixed@x.com"))
        assert store.find_by_email("Mixed@x.com") is not None
        assert store.find_by_email("mixed@x.com") is None

    def test_missing_user(self, store: UserStore) -> None:
        assert store.find_one("no-such-id") is None
        assert store.find_by_email("nobody@x.com") is None


class TestRefreshTokenHash:
    def test_set_then_read(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-1")
        stored = store.find_one(user.id)
        assert stored.refresh_token_hash == "digest-1"
        assert stored.updated_at >= user.updated_at

    def test_set_overwrites(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-1")
        store.set_refresh_token_hash(user.id, "digest-2")
        assert store.find_one(user.id).refresh_token_hash == "digest-2"

    def test_swap_with_expected_value(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-1")
        assert store.swap_refresh_token_hash(user.id, expected="digest-1", digest="digest-2") is True
        assert store.find_one(user.id).refresh_token_hash == "digest-2"

    def test_swap_with_stale_value_is_refused(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-2")
        assert store.swap_refresh_token_hash(user.id, expected="digest-1", digest="digest-3") is False
        assert store.find_one(user.id).refresh_token_hash == "digest-2"

    def test_swap_after_clear_is_refused(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-1")
        store.clear_refresh_token_hash(user.id)
        assert store.swap_refresh_token_hash(user.id, expected="digest-1", digest="digest-2") is False
        assert store.find_one(user.id).refresh_token_hash is None

    def test_clear_is_idempotent(self, store: UserStore) -> None:
        user = store.create(_new_user())
        store.set_refresh_token_hash(user.id, "digest-1")
        store.clear_refresh_token_hash(user.id)
        store.clear_refresh_token_hash(user.id)
        assert store.find_one(user.id).refresh_token_hash is None

    def test_clear_unknown_user_is_noop(self, store: UserStore) -> None:
        store.clear_refresh_token_hash("no-such-id")


def test_ping(store: UserStore) -> None:
    assert store.ping() is True
