import json
import os
from pathlib import Path


_ROOT = Path(__file__).resolve().parents[2]
_TOKEN_PATH = _ROOT / "TOKEN"
DB_PATH = Path(os.environ.get("GOLDBOT_DB_PATH", _ROOT / "data" / "goldbot.db"))

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS

# APP CONFIGS
COMMAND_PREFIX = "."                        # Prefix for chat text commands (.dig, .spin 100)
DIG_COOLDOWN_MINUTES = 30                   # Minutes between .dig claims
FISH_COOLDOWN_MINUTES = 30                  # Minutes between .fish claims
WORK_COOLDOWN_MINUTES = 60                  # Minutes between .work claims
DAILY_COOLDOWN_HOURS = 24                   # Hours between .daily claims
WEEKLY_COOLDOWN_DAYS = 7                    # Days between .weekly claims
HISTORY_LIMIT = 500                         # Max history rows kept per account; older rows fold into history_base
COMMIT_RETRIES = 5                          # Attempts before a lost optimistic commit becomes a persistence failure
LOCK_TIMEOUT_SECONDS = 5.0                  # Max wait for the per-account lock and the SQLite write lock
HISTORY_PAGE_SIZE = 10                      # Entries shown by .history

MAX_AMOUNT = 1_000_000_000                  # Largest single bet, credit or debit
MAX_BALANCE = 2**63 - 1                     # SQLite INTEGER ceiling for a stored balance
LOCK_STRIPES = 64                           # Per-account locks are shared across this many stripes


def read_token() -> str:
    env_token = os.environ.get("GOLDBOT_TOKEN", "").strip()
    if env_token:
        return env_token
    if _TOKEN_PATH.exists():
        return _TOKEN_PATH.read_text(encoding="utf-8").strip()
    return ""


def normalize_owner_id(raw: object) -> str:
    """Strip whitespace and any ``@domain`` suffix from a user id."""
    text = "".join(str(raw).split())
    return text.split("@", 1)[0]


def parse_owner_ids(raw: str | int | list | tuple | None) -> frozenset[str]:
    if raw is None:
        return frozenset()
    if isinstance(raw, (list, tuple)):
        items = list(raw)
    elif isinstance(raw, int):
        items = [raw]
    else:
        text = str(raw).strip()
        if not text:
            return frozenset()
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            decoded = text
        if isinstance(decoded, list):
            items = decoded
        elif isinstance(decoded, (str, int)):
            items = str(decoded).replace(";", ",").replace("|", ",").split(",")
        else:
            items = [text]
    out: set[str] = set()
    for item in items:
        owner = normalize_owner_id(item)
        if owner:
            out.add(owner)
    return frozenset(out)


OWNER_IDS = parse_owner_ids(
    os.environ.get("GOLDBOT_OWNERS") or os.environ.get("OWNER")
)
