from __future__ import annotations

import argparse
import json
import logging
import sys
from functools import partial
from pathlib import Path

# Ensure project root is importable when running as a standalone script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from goldbot.config.runtime import get_all_app_configs, get_app_config, set_app_config
from goldbot.core.errors import PersistenceFailure
from goldbot.db import audit_accounts, get_account, get_connection, init_db
from goldbot.services.ledger import LedgerService


def _build_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect and maintain the goldbot ledger DB.")
    parser.add_argument(
        "--db-path",
        default="",
        help="Optional DB path override. Defaults to GOLDBOT_DB_PATH or data/goldbot.db.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print one account as JSON.")
    show.add_argument("user_id")

    give = sub.add_parser("give", help="Credit gold to an account.")
    give.add_argument("user_id")
    give.add_argument("amount", type=int)

    config = sub.add_parser("config", help="List runtime config, show NAME, or set NAME VALUE.")
    config.add_argument("name", nargs="?")
    config.add_argument("value", nargs="?")

    sub.add_parser("audit", help="List accounts whose history does not replay to their balance.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    args = _build_args(argv)
    factory = partial(get_connection, Path(args.db_path).expanduser()) if args.db_path else get_connection
    init_db(factory)

    if args.command == "show":
        account = get_account(args.user_id, connection_factory=factory)
        if account is None:
            print(f"No account for {args.user_id}")
            return 1
        print(json.dumps(account, indent=2))
        return 0

    if args.command == "give":
        ledger = LedgerService.from_app_config(factory)
        try:
            result = ledger.credit_admin(args.user_id, args.amount, authorized=True)
        except PersistenceFailure as exc:
            print(f"Failed: {exc}")
            return 2
        if not result.accepted:
            print(f"Declined: {result.decline_reason.value}")
            return 1
        print(f"{args.user_id} now has {result.new_balance} gold")
        return 0

    if args.command == "config":
        if args.name and args.value is not None:
            try:
                value = set_app_config(args.name.upper(), args.value, factory)
            except (KeyError, ValueError) as exc:
                print(f"Cannot set {args.name}: {exc}")
                return 1
            print(f"{args.name.upper()} = {value}")
            return 0
        if args.name:
            try:
                value = get_app_config(args.name.upper(), factory)
            except KeyError as exc:
                print(exc.args[0])
                return 1
            print(f"{args.name.upper()} = {value}")
            return 0
        for row in get_all_app_configs(factory):
            print(f"{row['name']:<24} {row['value']!s:<8} (default {row['default']}) {row['description']}")
        return 0

    flagged = audit_accounts(connection_factory=factory)
    for row in flagged:
        print(f"{row['user_id']}: balance={row['balance']} replayed={row['replayed']}")
    print(f"{len(flagged)} account(s) out of balance")
    return 1 if flagged else 0


if __name__ == "__main__":
    raise SystemExit(main())
