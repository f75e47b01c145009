"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Session and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the schema. Registration checks first so the
  common case returns a clean Conflict; the constraint catches the race where
  two registrations for the same email pass the check together.

  rotate_tokens() is a compare-and-swap: the UPDATE only matches while the
  stored refresh token still equals the one the caller presented. Two
  concurrent refreshes with the same token cannot both succeed.

DB path: auth/taskpro_auth.db by default (Settings.database_url).

Layer rule: no imports from api/, core/, or notify/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False, server_default=""),
    Column("hashed_password", Text, nullable=False),
    Column("theme", String(30), nullable=False, server_default="light"),
    Column("avatar_url", Text, nullable=False, server_default=""),
    Column("confirmation_token", String(64)),
    Column("access_token", Text),
    Column("refresh_token", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Fields a profile/theme update may touch. Tokens and the confirmation token
# have dedicated methods so they cannot be changed through update_user().
_UPDATABLE_FIELDS = frozenset({"name", "email", "hashed_password", "theme", "avatar_url"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records and their session tokens.

    Usage:
        store = UserStore("sqlite:///:memory:")
        uid = store.create_user(User(email="a@b.c", hashed_password=hash_password("pw")))
        store.set_tokens(uid, pair.access_token, pair.refresh_token)
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
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        """Return True if another record already uses this email."""
        query = _users.select().where(_users.c.email == email)
        if exclude_id is not None:
            query = query.where(_users.c.id != exclude_id)
        with self.engine.connect() as conn:
            return conn.execute(query).fetchone() is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        New users always start logged out.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    name=user.name,
                    hashed_password=user.hashed_password,
                    theme=user.theme,
                    avatar_url=user.avatar_url,
                    confirmation_token=user.confirmation_token,
                    access_token=None,
                    refresh_token=None,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update profile fields on an existing user.

        Accepted fields: name, email, hashed_password, theme, avatar_url.
        Unknown fields raise ValueError.

        Returns True if a row was updated, False if user_id was not found.
        Raises sqlalchemy.exc.IntegrityError on a duplicate email.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if not fields:
            return self.get_by_id(user_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def set_tokens(self, user_id: int, access_token: str, refresh_token: str) -> bool:
        """Store a new token pair unconditionally (login)."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(access_token=access_token, refresh_token=refresh_token, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def rotate_tokens(self, user_id: int, previous_refresh: str, access_token: str, refresh_token: str) -> bool:
        """Replace the token pair only if the stored refresh token is still previous_refresh.

        Returns False when another request rotated (or logged out) first.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.refresh_token == previous_refresh))
                .values(access_token=access_token, refresh_token=refresh_token, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def clear_tokens(self, user_id: int) -> None:
        """Null both tokens. Safe to call on an already logged-out user."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(access_token=None, refresh_token=None, updated_at=_now_iso())
            )
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name or "",
        hashed_password=row.hashed_password,
        theme=row.theme,
        avatar_url=row.avatar_url or "",
        confirmation_token=row.confirmation_token,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
