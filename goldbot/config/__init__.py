from goldbot.config.settings import (
    COMMAND_PREFIX,
    COMMIT_RETRIES,
    DB_PATH,
    HISTORY_LIMIT,
    LOCK_TIMEOUT_SECONDS,
    OWNER_IDS,
    read_token,
)

__all__ = [
    "COMMAND_PREFIX",
    "COMMIT_RETRIES",
    "DB_PATH",
    "HISTORY_LIMIT",
    "LOCK_TIMEOUT_SECONDS",
    "OWNER_IDS",
    "read_token",
]
