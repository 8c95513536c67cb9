from __future__ import annotations

import logging
import random
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, TypeVar

from goldbot.config import COMMIT_RETRIES, HISTORY_LIMIT, LOCK_TIMEOUT_SECONDS
from goldbot.config.settings import LOCK_STRIPES, MAX_AMOUNT, MAX_BALANCE
from goldbot.config.runtime import EARNING_COOLDOWN_CONFIG, earning_period_ms, get_app_config
from goldbot.core.cooldowns import try_claim
from goldbot.core.errors import ConcurrentWriteConflict, Decline, PersistenceFailure
from goldbot.core.wagers import GAMES, MAX_MULTIPLIER, RandomSource, Reward, Settlement, resolve, roll_reward
from goldbot.db.database import ConnectionFactory, get_connection
from goldbot.db.repositories import apply_delta, ensure_account, get_account, get_history

logger = logging.getLogger(__name__)

T = TypeVar("T")


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _valid_amount(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 < value <= MAX_AMOUNT


@dataclass(frozen=True)
class ClaimResult:
    granted: bool
    action: str
    period_ms: int = 0
    new_balance: int | None = None
    reward: Reward | None = None
    wait_remaining_ms: int | None = None
    decline_reason: Decline | None = None


@dataclass(frozen=True)
class WagerResult:
    accepted: bool
    game: str
    bet: object
    decline_reason: Decline | None = None
    balance: int | None = None
    new_balance: int | None = None
    settlement: Settlement | None = None

    @property
    def outcome_description(self) -> str | None:
        return None if self.settlement is None else self.settlement.description


@dataclass(frozen=True)
class AdjustmentResult:
    accepted: bool
    amount: object
    decline_reason: Decline | None = None
    new_balance: int | None = None


class LedgerService:
    """
    Entry point for every balance change.

    Writes to one account are serialized by an in-process lock, picked from
    a fixed set of stripes by user id, and by a version compare-and-swap in
    the store, which also covers other processes sharing the database. A
    lost race is retried from a fresh read; after ``retries`` losses the
    request fails with PersistenceFailure.
    """

    def __init__(
        self,
        *,
        connection_factory: ConnectionFactory = get_connection,
        rng: RandomSource | None = None,
        clock: Callable[[], int] = wall_clock_ms,
        history_limit: int = HISTORY_LIMIT,
        retries: int = COMMIT_RETRIES,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        lock_stripes: int = LOCK_STRIPES,
    ) -> None:
        self._connection_factory = connection_factory
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._history_limit = int(history_limit)
        self._retries = max(1, int(retries))
        self._lock_timeout = float(lock_timeout)
        self._locks = tuple(threading.Lock() for _ in range(max(1, int(lock_stripes))))

    @classmethod
    def from_app_config(
        cls,
        connection_factory: ConnectionFactory = get_connection,
        **kwargs,
    ) -> "LedgerService":
        return cls(
            connection_factory=connection_factory,
            history_limit=int(get_app_config("HISTORY_LIMIT", connection_factory)),
            retries=int(get_app_config("COMMIT_RETRIES", connection_factory)),
            **kwargs,
        )

    def _lock_for(self, user_id: str) -> threading.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    @contextmanager
    def _account_lock(self, user_id: str) -> Iterator[None]:
        lock = self._lock_for(user_id)
        if not lock.acquire(timeout=self._lock_timeout):
            raise ConcurrentWriteConflict(f"timed out waiting for account {user_id}")
        try:
            yield
        finally:
            lock.release()

    def _commit(self, user_id: str, attempt: Callable[[], T]) -> T:
        last_conflict: Exception | None = None
        for tries in range(1, self._retries + 1):
            try:
                with self._account_lock(user_id):
                    return attempt()
            except ConcurrentWriteConflict as exc:
                last_conflict = exc
            except sqlite3.OperationalError as exc:
                if "locked" not in str(exc):
                    logger.exception("Account store failure for %s", user_id)
                    raise PersistenceFailure(str(exc)) from exc
                last_conflict = exc
            except sqlite3.Error as exc:
                logger.exception("Account store failure for %s", user_id)
                raise PersistenceFailure(str(exc)) from exc
            logger.debug(
                "Write conflict on %s (attempt %d/%d): %s",
                user_id, tries, self._retries, last_conflict,
            )
        logger.error("Giving up on %s after %d conflicting commits", user_id, self._retries)
        raise PersistenceFailure(f"could not commit to account {user_id}") from last_conflict

    def _read(self, user_id: str) -> dict:
        account = get_account(user_id, connection_factory=self._connection_factory)
        if account is None:
            account = ensure_account(
                user_id,
                now_ms=self._clock(),
                connection_factory=self._connection_factory,
            )
        return account

    def _guarded_read(self, user_id: str) -> dict:
        try:
            return self._read(user_id)
        except sqlite3.Error as exc:
            logger.exception("Account store failure for %s", user_id)
            raise PersistenceFailure(str(exc)) from exc

    def ensure_account(self, user_id: str) -> dict:
        return self._guarded_read(str(user_id))

    def get_balance(self, user_id: str) -> int:
        return int(self._guarded_read(str(user_id))["balance"])

    def get_history(self, user_id: str, limit: int | None = None) -> list[dict]:
        try:
            return get_history(str(user_id), limit, connection_factory=self._connection_factory)
        except sqlite3.Error as exc:
            logger.exception("Account store failure for %s", user_id)
            raise PersistenceFailure(str(exc)) from exc

    def claim_earning(
        self,
        user_id: str,
        action: str,
        cooldown_period_ms: int,
        reward_fn: Callable[[], int | Reward],
    ) -> ClaimResult:
        """Credit a timed reward once per cooldown period.

        The credit and the new cooldown timestamp land in the same commit,
        and that commit fails if the account changed after the cooldown was
        checked, so two racing claims cannot both pass.
        """
        user_id = str(user_id)
        period_ms = int(cooldown_period_ms)

        def attempt() -> ClaimResult:
            account = self._read(user_id)
            now_ms = self._clock()
            check = try_claim(account["cooldowns"].get(action), now_ms, period_ms)
            if not check.allowed:
                return ClaimResult(
                    granted=False,
                    action=action,
                    period_ms=period_ms,
                    wait_remaining_ms=check.remaining_ms,
                    decline_reason=Decline.COOLDOWN_ACTIVE,
                )
            rolled = reward_fn()
            reward = rolled if isinstance(rolled, Reward) else Reward(action=action, amount=int(rolled))
            if int(account["balance"]) + reward.amount > MAX_BALANCE:
                return ClaimResult(
                    granted=False,
                    action=action,
                    period_ms=period_ms,
                    decline_reason=Decline.BALANCE_LIMIT,
                )
            new_balance = apply_delta(
                user_id,
                reward.amount,
                clamp_at_zero=True,
                expected_version=account["version"],
                cooldown=(action, now_ms),
                timestamp_ms=now_ms,
                history_limit=self._history_limit,
                connection_factory=self._connection_factory,
            )
            return ClaimResult(
                granted=True,
                action=action,
                period_ms=period_ms,
                new_balance=new_balance,
                reward=reward,
            )

        result = self._commit(user_id, attempt)
        if result.granted:
            logger.info("%s claimed %s for %d gold", user_id, action, result.reward.amount)
        return result

    def earn(self, user_id: str, action: str, job: str | None = None) -> ClaimResult:
        name = str(action).strip().lower()
        if name not in EARNING_COOLDOWN_CONFIG:
            return ClaimResult(granted=False, action=name, decline_reason=Decline.UNKNOWN_ACTION)
        try:
            period_ms = earning_period_ms(name, self._connection_factory)
        except sqlite3.Error as exc:
            logger.exception("Could not read cooldown config for %s", name)
            raise PersistenceFailure(str(exc)) from exc
        return self.claim_earning(
            user_id,
            name,
            period_ms,
            lambda: roll_reward(name, self._rng, job),
        )

    def place_wager(
        self,
        user_id: str,
        game: str,
        bet: int,
        pick: str | None = None,
    ) -> WagerResult:
        user_id = str(user_id)
        name = str(game).strip().lower()
        if name not in GAMES:
            return WagerResult(accepted=False, game=name, bet=bet, decline_reason=Decline.UNKNOWN_GAME)
        if not _valid_amount(bet):
            return WagerResult(accepted=False, game=name, bet=bet, decline_reason=Decline.INVALID_AMOUNT)

        def attempt() -> WagerResult:
            account = self._read(user_id)
            balance = int(account["balance"])
            if bet > balance:
                return WagerResult(
                    accepted=False,
                    game=name,
                    bet=bet,
                    decline_reason=Decline.INSUFFICIENT_FUNDS,
                    balance=balance,
                )
            if balance + bet * MAX_MULTIPLIER > MAX_BALANCE:
                return WagerResult(
                    accepted=False,
                    game=name,
                    bet=bet,
                    decline_reason=Decline.BALANCE_LIMIT,
                    balance=balance,
                )
            settlement = resolve(name, bet, self._rng, pick)
            # Stake was checked against this exact version, so no clamping.
            new_balance = apply_delta(
                user_id,
                settlement.delta,
                clamp_at_zero=False,
                expected_version=account["version"],
                timestamp_ms=self._clock(),
                history_limit=self._history_limit,
                connection_factory=self._connection_factory,
            )
            return WagerResult(
                accepted=True,
                game=name,
                bet=bet,
                balance=balance,
                new_balance=new_balance,
                settlement=settlement,
            )

        result = self._commit(user_id, attempt)
        if result.accepted:
            logger.info(
                "%s played %s for %d: delta %+d",
                user_id, name, bet, result.settlement.delta,
            )
        return result

    def credit_admin(self, user_id: str, amount: int, *, authorized: bool) -> AdjustmentResult:
        user_id = str(user_id)
        if not authorized:
            logger.warning("Rejected unauthorized credit of %r to %s", amount, user_id)
            return AdjustmentResult(accepted=False, amount=amount, decline_reason=Decline.UNAUTHORIZED)
        if not _valid_amount(amount):
            return AdjustmentResult(accepted=False, amount=amount, decline_reason=Decline.INVALID_AMOUNT)

        def attempt() -> AdjustmentResult:
            account = self._read(user_id)
            if int(account["balance"]) + amount > MAX_BALANCE:
                return AdjustmentResult(accepted=False, amount=amount, decline_reason=Decline.BALANCE_LIMIT)
            new_balance = apply_delta(
                user_id,
                amount,
                clamp_at_zero=False,
                expected_version=account["version"],
                timestamp_ms=self._clock(),
                history_limit=self._history_limit,
                connection_factory=self._connection_factory,
            )
            return AdjustmentResult(accepted=True, amount=amount, new_balance=new_balance)

        result = self._commit(user_id, attempt)
        if result.accepted:
            logger.info("Credited %d gold to %s", amount, user_id)
        return result

    def debit(self, user_id: str, amount: int) -> AdjustmentResult:
        """Remove gold on an earning path; the balance stops at zero."""
        user_id = str(user_id)
        if not _valid_amount(amount):
            return AdjustmentResult(accepted=False, amount=amount, decline_reason=Decline.INVALID_AMOUNT)

        def attempt() -> int:
            return apply_delta(
                user_id,
                -amount,
                clamp_at_zero=True,
                timestamp_ms=self._clock(),
                history_limit=self._history_limit,
                connection_factory=self._connection_factory,
            )

        new_balance = self._commit(user_id, attempt)
        return AdjustmentResult(accepted=True, amount=amount, new_balance=new_balance)
