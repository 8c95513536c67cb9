from __future__ import annotations

import logging
import re

from goldbot.config.runtime import EARNING_COOLDOWN_CONFIG
from goldbot.config.settings import COMMAND_PREFIX, HISTORY_PAGE_SIZE, OWNER_IDS, normalize_owner_id
from goldbot.core.errors import PersistenceFailure
from goldbot.core.wagers import GAMES
from goldbot.services.ledger import LedgerService
from goldbot.services.messages import (
    FAILURE_MESSAGE,
    HELP_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    balance_message,
    claim_message,
    give_message,
    history_message,
    wager_message,
)
from goldbot.services.money import parse_amount

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"^<@!?(\d+)>$")
_JID_RE = re.compile(r"^\d+@\S+$")

GIVE_USAGE = "Usage: .give <userId> <amount>  (e.g. .give 1234567890 500)"


def is_owner(user_id: object, owner_ids: frozenset[str] = OWNER_IDS) -> bool:
    if user_id is None:
        return False
    uid = normalize_owner_id(user_id)
    return bool(uid) and uid in owner_ids


def parse_user_arg(arg: str | None) -> str | None:
    """Accept a chat mention, ``1234@domain`` or a bare number."""
    if not arg:
        return None
    text = str(arg).strip()
    mention = _MENTION_RE.match(text)
    if mention:
        return mention.group(1)
    if _JID_RE.match(text):
        return text
    digits = re.sub(r"\D", "", text)
    return digits or None


def handle_message(
    ledger: LedgerService,
    text: str,
    user_id: str,
    *,
    owner_ids: frozenset[str] = OWNER_IDS,
    prefix: str = COMMAND_PREFIX,
    history_page_size: int = HISTORY_PAGE_SIZE,
) -> str | None:
    """Run one economy text command and return the reply, or None if ``text`` is not a command."""
    if not text or not user_id:
        return None
    parts = text.strip().split()
    if not parts or not parts[0].startswith(prefix):
        return None
    cmd = parts[0][len(prefix):].lower()
    args = parts[1:]
    user_id = str(user_id)

    try:
        if cmd in {"balance", "bal"}:
            return balance_message(ledger.get_balance(user_id))

        if cmd in {"give", "grant"}:
            return _give(ledger, user_id, args, owner_ids)

        if cmd in EARNING_COOLDOWN_CONFIG:
            job = args[0] if cmd == "work" and args else None
            return claim_message(ledger.earn(user_id, cmd, job=job))

        if cmd in GAMES:
            bet = parse_amount(args[0]) if args else None
            pick = args[1] if cmd == "roulette" and len(args) > 1 else None
            return wager_message(ledger.place_wager(user_id, cmd, bet, pick=pick))

        if cmd == "history":
            return history_message(ledger.get_history(user_id, history_page_size))
    except PersistenceFailure:
        return FAILURE_MESSAGE

    return HELP_MESSAGE


def _give(
    ledger: LedgerService,
    user_id: str,
    args: list[str],
    owner_ids: frozenset[str],
) -> str:
    if not is_owner(user_id, owner_ids):
        logger.warning("Non-owner %s tried to give gold", user_id)
        return UNAUTHORIZED_MESSAGE
    if len(args) < 2:
        return GIVE_USAGE
    recipient = parse_user_arg(args[0])
    if recipient is None:
        return "Invalid recipient ID."
    amount = parse_amount(args[1])
    result = ledger.credit_admin(recipient, amount, authorized=True)
    return give_message(result, recipient)
