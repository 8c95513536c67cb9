from goldbot.db.database import connection, get_connection, init_db, transaction
from goldbot.db.repositories import (
    apply_delta,
    audit_accounts,
    ensure_account,
    get_account,
    get_cooldown,
    get_history,
    get_state_value,
    set_cooldown,
    set_state_value,
)

__all__ = [
    "apply_delta",
    "audit_accounts",
    "connection",
    "ensure_account",
    "get_account",
    "get_connection",
    "get_cooldown",
    "get_history",
    "get_state_value",
    "init_db",
    "set_cooldown",
    "set_state_value",
    "transaction",
]
