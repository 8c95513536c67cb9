from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from goldbot.config import DB_PATH, LOCK_TIMEOUT_SECONDS

ConnectionFactory = Callable[[], sqlite3.Connection]


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    path = Path(db_path) if db_path is not None else Path(DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=LOCK_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def connection(connection_factory: ConnectionFactory = get_connection) -> Iterator[sqlite3.Connection]:
    """Read-only access; the connection is closed on exit."""
    conn = connection_factory()
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(connection_factory: ConnectionFactory = get_connection) -> Iterator[sqlite3.Connection]:
    """Run the block inside ``BEGIN IMMEDIATE`` and commit only if it returns.

    The write lock is taken up front, so nothing the block reads can change
    under it. Any exception rolls the whole block back.
    """
    conn = connection_factory()
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK;")
            raise
        conn.execute("COMMIT;")
    finally:
        conn.close()


def init_db(connection_factory: ConnectionFactory = get_connection) -> None:
    with connection(connection_factory) as conn:
        conn.execute("PRAGMA journal_mode = WAL;")
    with transaction(connection_factory) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS accounts (
                user_id TEXT PRIMARY KEY,
                balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
                history_base INTEGER NOT NULL DEFAULT 0,
                version INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS cooldowns (
                user_id TEXT NOT NULL,
                action TEXT NOT NULL,
                claimed_at INTEGER NOT NULL,
                PRIMARY KEY (user_id, action),
                FOREIGN KEY (user_id)
                    REFERENCES accounts (user_id)
                    ON DELETE CASCADE
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                ts INTEGER NOT NULL,
                delta INTEGER NOT NULL,
                FOREIGN KEY (user_id)
                    REFERENCES accounts (user_id)
                    ON DELETE CASCADE
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_user ON history (user_id, id);"
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
