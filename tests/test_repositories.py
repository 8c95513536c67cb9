import unittest

from goldbot.core.errors import ConcurrentWriteConflict, InsufficientFunds
from goldbot.db.database import transaction
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

from ledger_fixtures import TempDatabaseMixin


def _replayed(account: dict) -> int:
    return account["history_base"] + sum(entry["delta"] for entry in account["history"])


class AccountStoreTests(TempDatabaseMixin, unittest.TestCase):
    def test_ensure_is_idempotent(self) -> None:
        first = ensure_account("u1", connection_factory=self.connection_factory)
        apply_delta("u1", 25, clamp_at_zero=True, connection_factory=self.connection_factory)
        second = ensure_account("u1", connection_factory=self.connection_factory)
        self.assertEqual(first["balance"], 0)
        self.assertEqual(first["cooldowns"], {})
        self.assertEqual(first["history"], [])
        self.assertEqual(second["balance"], 25)

    def test_get_missing_account(self) -> None:
        self.assertIsNone(get_account("ghost", connection_factory=self.connection_factory))

    def test_clamped_debit_records_applied_delta(self) -> None:
        apply_delta("u1", 30, clamp_at_zero=True, timestamp_ms=1, connection_factory=self.connection_factory)
        new_balance = apply_delta(
            "u1", -50, clamp_at_zero=True, timestamp_ms=2, connection_factory=self.connection_factory
        )
        self.assertEqual(new_balance, 0)
        account = get_account("u1", connection_factory=self.connection_factory)
        self.assertEqual([e["delta"] for e in account["history"]], [30, -30])
        self.assertEqual(_replayed(account), account["balance"])

    def test_unclamped_debit_past_zero_is_rejected(self) -> None:
        apply_delta("u1", 10, clamp_at_zero=False, connection_factory=self.connection_factory)
        with self.assertRaises(InsufficientFunds):
            apply_delta("u1", -11, clamp_at_zero=False, connection_factory=self.connection_factory)
        account = get_account("u1", connection_factory=self.connection_factory)
        self.assertEqual(account["balance"], 10)
        self.assertEqual(len(account["history"]), 1)

    def test_stale_version_conflicts_without_writing(self) -> None:
        account = ensure_account("u1", connection_factory=self.connection_factory)
        apply_delta("u1", 5, clamp_at_zero=False, connection_factory=self.connection_factory)
        with self.assertRaises(ConcurrentWriteConflict):
            apply_delta(
                "u1",
                100,
                clamp_at_zero=False,
                expected_version=account["version"],
                cooldown=("daily", 123),
                connection_factory=self.connection_factory,
            )
        after = get_account("u1", connection_factory=self.connection_factory)
        self.assertEqual(after["balance"], 5)
        self.assertEqual(after["cooldowns"], {})

    def test_credit_and_cooldown_commit_together(self) -> None:
        account = ensure_account("u1", connection_factory=self.connection_factory)
        apply_delta(
            "u1",
            40,
            clamp_at_zero=True,
            expected_version=account["version"],
            cooldown=("dig", 5_000),
            timestamp_ms=5_000,
            connection_factory=self.connection_factory,
        )
        after = get_account("u1", connection_factory=self.connection_factory)
        self.assertEqual(after["balance"], 40)
        self.assertEqual(after["cooldowns"], {"dig": 5_000})
        self.assertEqual(after["version"], account["version"] + 1)

    def test_cooldown_never_moves_backwards(self) -> None:
        set_cooldown("u1", "dig", 2_000, connection_factory=self.connection_factory)
        set_cooldown("u1", "dig", 1_000, connection_factory=self.connection_factory)
        self.assertEqual(get_cooldown("u1", "dig", connection_factory=self.connection_factory), 2_000)
        self.assertEqual(get_cooldown("u1", "fish", connection_factory=self.connection_factory), 0)

    def test_history_cap_keeps_replay_exact(self) -> None:
        for i in range(12):
            apply_delta(
                "u1",
                10 if i % 3 else -4,
                clamp_at_zero=True,
                timestamp_ms=i,
                history_limit=5,
                connection_factory=self.connection_factory,
            )
        account = get_account("u1", connection_factory=self.connection_factory)
        self.assertEqual(len(account["history"]), 5)
        self.assertEqual(_replayed(account), account["balance"])
        newest = get_history("u1", 2, connection_factory=self.connection_factory)
        self.assertEqual([e["timestamp"] for e in newest], [11, 10])

    def test_audit_flags_tampered_balances(self) -> None:
        apply_delta("u1", 10, clamp_at_zero=True, connection_factory=self.connection_factory)
        apply_delta("u2", 20, clamp_at_zero=True, history_limit=1, connection_factory=self.connection_factory)
        apply_delta("u2", -5, clamp_at_zero=True, history_limit=1, connection_factory=self.connection_factory)
        self.assertEqual(audit_accounts(connection_factory=self.connection_factory), [])

        with transaction(self.connection_factory) as conn:
            conn.execute("UPDATE accounts SET balance = 99 WHERE user_id = ?", ("u1",))
        flagged = audit_accounts(connection_factory=self.connection_factory)
        self.assertEqual([row["user_id"] for row in flagged], ["u1"])
        self.assertEqual(flagged[0]["replayed"], 10)

    def test_state_values(self) -> None:
        self.assertIsNone(get_state_value("k", connection_factory=self.connection_factory))
        set_state_value("k", "1", connection_factory=self.connection_factory)
        set_state_value("k", "2", connection_factory=self.connection_factory)
        self.assertEqual(get_state_value("k", connection_factory=self.connection_factory), "2")


if __name__ == "__main__":
    unittest.main()
