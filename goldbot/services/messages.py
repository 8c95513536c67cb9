from __future__ import annotations

from datetime import datetime, timezone

from goldbot.config.settings import MAX_AMOUNT
from goldbot.core.cooldowns import wait_units
from goldbot.core.errors import Decline
from goldbot.core.wagers import Settlement
from goldbot.services.ledger import AdjustmentResult, ClaimResult, WagerResult
from goldbot.services.money import format_gold

FAILURE_MESSAGE = "⚠️ Something went wrong saving your gold. Please try again later."
UNAUTHORIZED_MESSAGE = "❌ Only the bot owner can use this command."
BALANCE_LIMIT_MESSAGE = "❌ That would push the balance past what the ledger can hold."
HELP_MESSAGE = (
    "Unknown economy command. Available: "
    "balance,dig,fish,work,daily,weekly,spin,slots,roulette,casino,history,give"
)

_COOLDOWN_TEMPLATES: dict[str, str] = {
    "dig": "⏳ Try again in {wait}.",
    "fish": "⏳ Try again in {wait}.",
    "work": "⏳ You can work again in {wait}.",
    "daily": "⏳ Daily bonus already claimed. Try again in {wait}.",
    "weekly": "⏳ Weekly bonus already claimed. Try again in {wait}.",
}

_WIN_EMOJI = {"spin": "🎉", "casino": "🃏", "roulette": "🎯"}
_LOSS_EMOJI = {"spin": "😞", "casino": "🏚️", "roulette": "🎯"}


def balance_message(balance: int) -> str:
    return f"💰 Balance: {format_gold(balance)} gold"


def format_wait(remaining_ms: int, period_ms: int) -> str:
    count, unit = wait_units(remaining_ms, period_ms)
    return f"{count} {unit}(s)"


def claim_message(result: ClaimResult) -> str:
    if result.decline_reason == Decline.UNKNOWN_ACTION:
        return HELP_MESSAGE
    if result.decline_reason == Decline.BALANCE_LIMIT:
        return BALANCE_LIMIT_MESSAGE
    if not result.granted:
        template = _COOLDOWN_TEMPLATES.get(result.action, "⏳ Try again in {wait}.")
        return template.format(wait=format_wait(result.wait_remaining_ms or 0, result.period_ms))
    amount = format_gold(result.reward.amount)
    if result.action == "work":
        return f"🛠️ You worked as a {result.reward.job} and earned +{amount} gold"
    if result.action == "daily":
        return f"🎁 Daily bonus: +{amount} gold"
    if result.action == "weekly":
        return f"🏆 Weekly bonus: +{amount} gold"
    return f"+{amount} gold from {result.action}!"


def settlement_message(settlement: Settlement) -> str:
    if settlement.won:
        change = f"+{format_gold(settlement.delta)} gold"
    else:
        change = f"-{format_gold(settlement.bet)} gold"

    if settlement.game == "slots":
        reels = " | ".join(settlement.detail.get("reels", ()))
        joiner = " -> " if settlement.won else " "
        return f"🎰 [ {reels} ]\n{settlement.description}{joiner}{change}"

    if settlement.game == "roulette":
        rolled = f"Rolled {settlement.detail.get('number')} {settlement.detail.get('color')}."
        emoji = "🎡" if settlement.detail.get("pick") is None else "🎯"
        return f"{emoji} {rolled} {settlement.description} {change}"

    if settlement.game == "casino" and settlement.multiplier == 5:
        return f"💎 {settlement.description} {change}"

    if settlement.won:
        joiner = " -> " if settlement.game == "spin" else " "
        return f"{_WIN_EMOJI.get(settlement.game, '🎉')} {settlement.description}{joiner}{change}"
    return f"{_LOSS_EMOJI.get(settlement.game, '😞')} {settlement.description} {change}"


def wager_message(result: WagerResult) -> str:
    if result.decline_reason == Decline.INVALID_AMOUNT:
        if isinstance(result.bet, int) and result.bet > MAX_AMOUNT:
            return f"Bets are capped at {format_gold(MAX_AMOUNT)} gold."
        return "Specify a bet > 0"
    if result.decline_reason == Decline.BALANCE_LIMIT:
        return BALANCE_LIMIT_MESSAGE
    if result.decline_reason == Decline.INSUFFICIENT_FUNDS:
        return f"Insufficient funds. You have {format_gold(result.balance or 0)} gold."
    if result.decline_reason == Decline.UNKNOWN_GAME:
        return HELP_MESSAGE
    return settlement_message(result.settlement)


def give_message(result: AdjustmentResult, recipient: str) -> str:
    if result.decline_reason == Decline.UNAUTHORIZED:
        return UNAUTHORIZED_MESSAGE
    if result.decline_reason == Decline.BALANCE_LIMIT:
        return BALANCE_LIMIT_MESSAGE
    if not result.accepted:
        if isinstance(result.amount, int) and result.amount > MAX_AMOUNT:
            return f"Amount must be at most {format_gold(MAX_AMOUNT)} gold."
        return "Amount must be a positive integer."
    return f"✅ Gave {format_gold(result.amount)} gold to {recipient}"


def history_message(entries: list[dict]) -> str:
    if not entries:
        return "📜 No transactions yet."
    lines = ["📜 Recent transactions:"]
    for entry in entries:
        stamp = datetime.fromtimestamp(entry["timestamp"] / 1000, tz=timezone.utc)
        lines.append(f"`{stamp:%Y-%m-%d %H:%M}` {int(entry['delta']):+,} gold")
    return "\n".join(lines)
