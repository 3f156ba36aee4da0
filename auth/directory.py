"""
auth/directory.py -- The narrow persistence interface SessionManager depends on.

SessionManager never talks to a database. It needs exactly these operations on
user records; auth/store.py provides the SQLAlchemy implementation, tests may
provide their own.

Concurrency: the manager reads a user, then later writes its refresh hash.
set_refresh_token_hash() is last-write-wins. swap_refresh_token_hash() is a
compare-and-set keyed by the previous hash and is what refresh() uses, so two
concurrent refreshes with the same token cannot both rotate the session.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from auth.models import NewUser, User


@runtime_checkable
class UserDirectory(Protocol):
    def find_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive email match. None if absent."""
        ...

    def find_one(self, user_id: str) -> Optional[User]:
        ...

    def create(self, fields: NewUser) -> User:
        """Insert a user together with its first refresh hash, if any. Raises DuplicateEmail on an email clash."""
        ...

    def set_refresh_token_hash(self, user_id: str, digest: str) -> None:
        ...

    def swap_refresh_token_hash(self, user_id: str, expected: str, digest: str) -> bool:
        """Replace the refresh hash only if it still equals expected. True if swapped."""
        ...

    def clear_refresh_token_hash(self, user_id: str) -> None:
        """Set the refresh hash to None. A no-op if already None or the user is gone."""
        ...
