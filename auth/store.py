"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository and satisfies
the auth.directory.UserDirectory protocol; _row_to_user is the mapper.
SessionManager and route code never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only digests are written: password_hash and refresh_token_hash columns never
  hold plaintext.

  The UNIQUE constraint on email is the source of truth for duplicate
  detection. SessionManager checks first for a friendly error, but two
  concurrent registrations can both pass that check; the second INSERT then
  fails here and is reported as DuplicateEmail. Other integrity failures are
  not rewritten.

DB URL: from core.config (DATABASE_URL). Defaults to auth/sessiongate_auth.db.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateEmail
from auth.models import NewUser, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # uuid4, opaque to callers
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(50), nullable=False),
    Column("refresh_token_hash", Text),  # NULL = no active session
    Column("display_name", String(255)),
    Column("phone_number", String(50)),
    Column("branch", String(100), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.create(NewUser(email="a@x.com", password_hash=digest, role="staff", branch="north"))
        store.set_refresh_token_hash(user.id, refresh_digest)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_one(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, fields: NewUser) -> User:
        """Insert a new user, with its first refresh digest if given, and return the stored record.

        The row and its session are written by one INSERT, so there is never
        an account without the session that was issued for it.

        Raises DuplicateEmail if the email is already on file. Any other
        constraint failure (e.g. a NULL in a required column) propagates as
        IntegrityError.
        """
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=fields.id,
                        email=fields.email,
                        password_hash=fields.password_hash,
                        role=fields.role,
                        refresh_token_hash=fields.refresh_token_hash,
                        display_name=fields.display_name,
                        phone_number=fields.phone_number,
                        branch=fields.branch,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if fields.email is not None and self.find_by_email(fields.email) is not None:
                raise DuplicateEmail() from exc
            raise
        return User(
            id=fields.id,
            email=fields.email,
            password_hash=fields.password_hash,
            role=fields.role,
            branch=fields.branch,
            display_name=fields.display_name,
            phone_number=fields.phone_number,
            refresh_token_hash=fields.refresh_token_hash,
            created_at=now,
            updated_at=now,
        )

    def set_refresh_token_hash(self, user_id: str, digest: str) -> None:
        """Store the digest of the user's current refresh token, replacing any previous one."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(refresh_token_hash=digest, updated_at=_now_iso())
            )
            conn.commit()

    def swap_refresh_token_hash(self, user_id: str, expected: str, digest: str) -> bool:
        """Rotate the refresh digest only if it still equals expected.

        The WHERE clause carries the previous digest, so the database
        serializes concurrent rotations of the same row: exactly one UPDATE
        matches, every other one sees rowcount == 0.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.refresh_token_hash == expected))
                .values(refresh_token_hash=digest, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def clear_refresh_token_hash(self, user_id: str) -> None:
        """End the user's session. Idempotent: clearing an absent digest is a no-op."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.refresh_token_hash.is_not(None)))
                .values(refresh_token_hash=None, updated_at=_now_iso())
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        branch=row.branch,
        display_name=row.display_name,
        phone_number=row.phone_number,
        refresh_token_hash=row.refresh_token_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
