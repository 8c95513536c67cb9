from __future__ import annotations

import sqlite3
import time

from goldbot.config import HISTORY_LIMIT
from goldbot.core.errors import ConcurrentWriteConflict, InsufficientFunds
from goldbot.db.database import ConnectionFactory, connection, get_connection, transaction


def _now_ms() -> int:
    return int(time.time() * 1000)


def _insert_account(conn: sqlite3.Connection, user_id: str, created_at: int) -> None:
    conn.execute(
        """
        INSERT OR IGNORE INTO accounts (user_id, balance, history_base, version, created_at)
        VALUES (?, 0, 0, 0, ?)
        """,
        (user_id, created_at),
    )


def _load_account(conn: sqlite3.Connection, user_id: str) -> dict | None:
    row = conn.execute(
        """
        SELECT user_id, balance, history_base, version, created_at
        FROM accounts
        WHERE user_id = ?
        """,
        (user_id,),
    ).fetchone()
    if row is None:
        return None
    account = {
        "id": str(row["user_id"]),
        "balance": int(row["balance"]),
        "history_base": int(row["history_base"]),
        "version": int(row["version"]),
        "created_at": int(row["created_at"]),
    }
    cooldown_rows = conn.execute(
        "SELECT action, claimed_at FROM cooldowns WHERE user_id = ?",
        (user_id,),
    ).fetchall()
    account["cooldowns"] = {str(r["action"]): int(r["claimed_at"]) for r in cooldown_rows}
    history_rows = conn.execute(
        """
        SELECT ts, delta
        FROM history
        WHERE user_id = ?
        ORDER BY id ASC
        """,
        (user_id,),
    ).fetchall()
    account["history"] = [
        {"timestamp": int(r["ts"]), "delta": int(r["delta"])} for r in history_rows
    ]
    return account


def _upsert_cooldown(conn: sqlite3.Connection, user_id: str, action: str, claimed_at: int) -> None:
    # max() keeps a late or replayed write from moving the timestamp backwards.
    conn.execute(
        """
        INSERT INTO cooldowns (user_id, action, claimed_at)
        VALUES (?, ?, ?)
        ON CONFLICT(user_id, action)
        DO UPDATE SET claimed_at = max(claimed_at, excluded.claimed_at)
        """,
        (user_id, action, int(claimed_at)),
    )


def _prune_history(conn: sqlite3.Connection, user_id: str, history_limit: int) -> None:
    if history_limit <= 0:
        return
    stale = conn.execute(
        """
        SELECT id, delta
        FROM history
        WHERE user_id = ?
        ORDER BY id DESC
        LIMIT -1 OFFSET ?
        """,
        (user_id, int(history_limit)),
    ).fetchall()
    if not stale:
        return
    folded = sum(int(r["delta"]) for r in stale)
    cutoff = max(int(r["id"]) for r in stale)
    conn.execute(
        "UPDATE accounts SET history_base = history_base + ? WHERE user_id = ?",
        (folded, user_id),
    )
    conn.execute(
        "DELETE FROM history WHERE user_id = ? AND id <= ?",
        (user_id, cutoff),
    )


def ensure_account(
    user_id: str,
    *,
    now_ms: int | None = None,
    connection_factory: ConnectionFactory = get_connection,
) -> dict:
    with transaction(connection_factory) as conn:
        _insert_account(conn, user_id, now_ms if now_ms is not None else _now_ms())
        return _load_account(conn, user_id)


def get_account(
    user_id: str,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> dict | None:
    with connection(connection_factory) as conn:
        return _load_account(conn, user_id)


def apply_delta(
    user_id: str,
    delta: int,
    *,
    clamp_at_zero: bool,
    expected_version: int | None = None,
    cooldown: tuple[str, int] | None = None,
    timestamp_ms: int | None = None,
    history_limit: int = HISTORY_LIMIT,
    connection_factory: ConnectionFactory = get_connection,
) -> int:
    """
    Apply a balance change and record it, all in one transaction.

    Credits always add. Debits either clamp the balance at zero or, when
    ``clamp_at_zero`` is false, raise InsufficientFunds instead of going
    negative. The history row stores the delta actually applied. With
    ``expected_version`` the write only succeeds if nobody committed to the
    account since that version was read.
    """
    ts = timestamp_ms if timestamp_ms is not None else _now_ms()
    with transaction(connection_factory) as conn:
        _insert_account(conn, user_id, ts)
        row = conn.execute(
            "SELECT balance, version FROM accounts WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        balance = int(row["balance"])
        version = int(row["version"])
        if expected_version is not None and version != int(expected_version):
            raise ConcurrentWriteConflict(
                f"account {user_id} moved from version {expected_version} to {version}"
            )

        delta = int(delta)
        if delta >= 0:
            new_balance = balance + delta
        elif clamp_at_zero:
            new_balance = max(0, balance + delta)
        else:
            new_balance = balance + delta
            if new_balance < 0:
                raise InsufficientFunds(balance, -delta)
        applied = new_balance - balance

        cur = conn.execute(
            """
            UPDATE accounts
            SET balance = ?, version = version + 1
            WHERE user_id = ? AND version = ?
            """,
            (new_balance, user_id, version),
        )
        if cur.rowcount != 1:
            raise ConcurrentWriteConflict(f"account {user_id} changed during commit")
        conn.execute(
            "INSERT INTO history (user_id, ts, delta) VALUES (?, ?, ?)",
            (user_id, ts, applied),
        )
        if cooldown is not None:
            action, claimed_at = cooldown
            _upsert_cooldown(conn, user_id, action, claimed_at)
        _prune_history(conn, user_id, history_limit)
    return new_balance


def set_cooldown(
    user_id: str,
    action: str,
    timestamp_ms: int,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> None:
    with transaction(connection_factory) as conn:
        _insert_account(conn, user_id, int(timestamp_ms))
        _upsert_cooldown(conn, user_id, action, timestamp_ms)
        conn.execute(
            "UPDATE accounts SET version = version + 1 WHERE user_id = ?",
            (user_id,),
        )


def get_cooldown(
    user_id: str,
    action: str,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> int:
    with connection(connection_factory) as conn:
        row = conn.execute(
            "SELECT claimed_at FROM cooldowns WHERE user_id = ? AND action = ?",
            (user_id, action),
        ).fetchone()
    return 0 if row is None else int(row["claimed_at"])


def get_history(
    user_id: str,
    limit: int | None = None,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> list[dict]:
    with connection(connection_factory) as conn:
        rows = conn.execute(
            """
            SELECT ts, delta
            FROM history
            WHERE user_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (user_id, -1 if limit is None else max(1, int(limit))),
        ).fetchall()
    return [{"timestamp": int(r["ts"]), "delta": int(r["delta"])} for r in rows]


def get_state_value(
    key: str,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> str | None:
    with connection(connection_factory) as conn:
        row = conn.execute(
            "SELECT value FROM app_state WHERE key = ?",
            (key,),
        ).fetchone()
    return None if row is None else row["value"]


def set_state_value(
    key: str,
    value: str,
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> None:
    with transaction(connection_factory) as conn:
        conn.execute(
            """
            INSERT INTO app_state (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )


def audit_accounts(
    *,
    connection_factory: ConnectionFactory = get_connection,
) -> list[dict]:
    """Accounts whose history no longer replays to their stored balance."""
    with connection(connection_factory) as conn:
        rows = conn.execute(
            """
            SELECT
                a.user_id,
                a.balance,
                a.history_base + COALESCE(SUM(h.delta), 0) AS replayed
            FROM accounts a
            LEFT JOIN history h
              ON h.user_id = a.user_id
            GROUP BY a.user_id
            HAVING a.balance != replayed
            ORDER BY a.user_id
            """
        ).fetchall()
    return [dict(row) for row in rows]
