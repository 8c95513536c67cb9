from __future__ import annotations

from enum import Enum


class Decline(str, Enum):
    """Reasons a ledger request was turned down without touching state."""

    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    COOLDOWN_ACTIVE = "cooldown_active"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN_GAME = "unknown_game"
    UNKNOWN_ACTION = "unknown_action"
    BALANCE_LIMIT = "balance_limit"


class LedgerError(Exception):
    pass


class InsufficientFunds(LedgerError):
    def __init__(self, balance: int, requested: int) -> None:
        super().__init__(f"debit of {requested} exceeds balance {balance}")
        self.balance = balance
        self.requested = requested


class UnknownGame(LedgerError):
    pass


class ConcurrentWriteConflict(LedgerError):
    """Another writer committed to the account between read and write."""


class PersistenceFailure(LedgerError):
    """The account store could not be read or written."""
