import importlib.util
import io
import json
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from ledger_fixtures import TempDatabaseMixin

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "ledger_admin.py"
_spec = importlib.util.spec_from_file_location("ledger_admin", _SCRIPT)
ledger_admin = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(ledger_admin)


class LedgerAdminTests(TempDatabaseMixin, unittest.TestCase):
    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = ledger_admin.main(["--db-path", str(self.db_path), *argv])
        return code, out.getvalue()

    def test_give_then_show(self) -> None:
        code, text = self._run("give", "u1", "250")
        self.assertEqual(code, 0)
        self.assertIn("250 gold", text)

        code, text = self._run("show", "u1")
        self.assertEqual(code, 0)
        account = json.loads(text)
        self.assertEqual(account["balance"], 250)
        self.assertEqual(account["history"][0]["delta"], 250)

    def test_give_rejects_non_positive(self) -> None:
        code, text = self._run("give", "u1", "0")
        self.assertEqual(code, 1)
        self.assertIn("invalid_amount", text)

    def test_show_missing(self) -> None:
        self.assertEqual(self._run("show", "nobody")[0], 1)

    def test_config_set_and_list(self) -> None:
        code, text = self._run("config", "dig_cooldown_minutes", "10")
        self.assertEqual(code, 0)
        self.assertIn("DIG_COOLDOWN_MINUTES = 10", text)
        code, text = self._run("config")
        self.assertIn("DIG_COOLDOWN_MINUTES", text)
        self.assertEqual(self._run("config", "NOPE", "1")[0], 1)

    def test_config_name_alone_shows_one_setting(self) -> None:
        self._run("config", "DIG_COOLDOWN_MINUTES", "12")
        code, text = self._run("config", "dig_cooldown_minutes")
        self.assertEqual(code, 0)
        self.assertEqual(text.strip(), "DIG_COOLDOWN_MINUTES = 12")
        code, text = self._run("config", "NOPE")
        self.assertEqual(code, 1)
        self.assertIn("Unknown app config", text)

    def test_give_above_cap_is_declined(self) -> None:
        code, text = self._run("give", "u1", "99999999999999999999")
        self.assertEqual(code, 1)
        self.assertIn("invalid_amount", text)
        self.assertEqual(self._run("show", "u1")[0], 1)

    def test_audit_clean_database(self) -> None:
        self._run("give", "u1", "5")
        code, text = self._run("audit")
        self.assertEqual(code, 0)
        self.assertIn("0 account(s)", text)


if __name__ == "__main__":
    unittest.main()
