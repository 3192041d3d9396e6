"""SQLite-backed store of VPN users keyed by key fingerprint."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT NOT NULL PRIMARY KEY,
    fingerprint TEXT NOT NULL UNIQUE,
    uid TEXT NULL,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
)
"""

_COLUMNS = "id, fingerprint, uid, is_active, created_at, updated_at"


@dataclass(frozen=True)
class User:
    id: uuid.UUID
    fingerprint: str
    uid: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


def _row_to_user(row: tuple) -> User:
    id_, fingerprint, uid, is_active, created, updated = row
    return User(
        id=uuid.UUID(id_),
        fingerprint=fingerprint,
        uid=uid,
        is_active=bool(is_active),
        created_at=datetime.fromisoformat(created),
        updated_at=datetime.fromisoformat(updated),
    )


class UserStore:
    """The users table in an SQLite database."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.Lock()

    def __enter__(self) -> "UserStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create_schema(self) -> None:
        """Create the users table if it does not exist."""
        with self._lock, self._conn:
            self._conn.execute(_CREATE_TABLE)

    def drop_schema(self) -> None:
        """Drop the users table; fails if it does not exist."""
        with self._lock, self._conn:
            self._conn.execute("DROP TABLE users")

    def add(self, fingerprint: str, uid: str | None = None, is_active: bool = True) -> User:
        """Insert a new user; raises ValueError if the fingerprint is taken."""
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        user = User(uuid.uuid4(), fingerprint, uid, bool(is_active), now, now)
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    f"INSERT INTO users ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        str(user.id),
                        user.fingerprint,
                        user.uid,
                        user.is_active,
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"cannot add user with fingerprint {fingerprint!r}: {exc}") from exc
        return user

    def find_by_fingerprint(self, fingerprint: str) -> User | None:
        """Return the user with this fingerprint, or None."""
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM users WHERE fingerprint = ?", (fingerprint,)
            ).fetchone()
        return _row_to_user(row) if row else None

    def close(self) -> None:
        self._conn.close()