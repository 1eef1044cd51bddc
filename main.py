#!/usr/bin/env python3
"""
SmartBee admin CLI -- database setup and account provisioning without the HTTP API.

Usage:
  python main.py init-db
  python main.py create-account --given-name Ana --family-name Soto --locality Chillán --role ADM
  python main.py create-account --id USR_ADMIN --given-name Ana --family-name Soto --locality Chillán --role ADM
  python main.py list-accounts

The password for create-account is read interactively (never from argv).

Environment variables:
  DATABASE_URL   SQLAlchemy URL. Defaults to smartbee.db beside this file.
"""

import argparse
import getpass
import sys

from auth.accounts import AccountManager
from auth.models import AccountInput
from auth.store import AccountStore
from core.config import get_settings
from core.database import create_db_engine, init_schema
from core.errors import ServiceError


def _cmd_init_db(store: AccountStore, args: argparse.Namespace) -> int:
    roles = store.list_roles()
    print(f"  Schema ready. {len(roles)} role(s): {', '.join(r.code for r in roles)}")
    return 0


def _cmd_create_account(store: AccountStore, args: argparse.Namespace) -> int:
    secret = getpass.getpass("  Password: ")
    if secret != getpass.getpass("  Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1
    payload = AccountInput(
        id=args.id,
        given_name=args.given_name,
        family_name=args.family_name,
        locality=args.locality,
        secret=secret,
        role=args.role,
    )
    try:
        account = AccountManager(store).create(payload)
    except ServiceError as exc:
        print(f"  [!] {exc.message}")
        return 1
    print(f"  Created {account.id} ({account.display_name}, role {account.role}).")
    return 0


def _cmd_list_accounts(store: AccountStore, args: argparse.Namespace) -> int:
    accounts = store.list_accounts()
    if not accounts:
        print("  No active accounts.")
        return 0
    for a in accounts:
        print(f"  {a.id:<32} {a.display_name:<32} {a.role:<5} {a.locality}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="smartbee",
        description="SmartBee database setup and account provisioning.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create missing tables and seed the default roles")

    create = sub.add_parser("create-account", help="Create an account (password prompted)")
    create.add_argument("--id", default=None, help="Login identifier (generated when omitted)")
    create.add_argument("--given-name", required=True)
    create.add_argument("--family-name", required=True)
    create.add_argument("--locality", required=True)
    create.add_argument("--role", required=True, help="Role code, e.g. ADM or API")

    sub.add_parser("list-accounts", help="List active accounts")

    args = parser.parse_args()
    commands = {
        "init-db": _cmd_init_db,
        "create-account": _cmd_create_account,
        "list-accounts": _cmd_list_accounts,
    }

    settings = get_settings()
    engine = create_db_engine(settings.database_url)
    try:
        init_schema(engine)
        return commands[args.command](AccountStore(engine), args)
    except ServiceError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
