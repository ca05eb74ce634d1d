#!/usr/bin/env python3
"""
confreg -- operator command line.

Usage:
  python main.py create-admin --username ada --email ada@example.org --fullname "Ada Obi"

The password is prompted for twice and never accepted on the command line.
It must satisfy the same policy as POST /api/v1/auth/change-password.

Environment variables:
  DATABASE_URL  Database to write to (default: confreg.db in the project root)
  SECRET_KEY    Not used by this command, but Settings still requires it
                unless DEBUG=true.
"""

import argparse
import getpass
import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError

from api.models import EMAIL_PATTERN
from auth.models import Admin
from auth.passwords import check_password_policy, hash_password
from auth.store import AccountStore
from core.models import Role

logger = logging.getLogger("confreg.cli")

_EMAIL_RE = re.compile(EMAIL_PATTERN)


def _prompt_password() -> Optional[str]:
    """Prompt for a password and its confirmation. Returns None on a problem."""
    password = getpass.getpass("  Password: ")
    confirm = getpass.getpass("  Confirm password: ")
    if password != confirm:
        print("  [!] Passwords do not match.")
        return None
    failed = check_password_policy(password)
    if failed:
        for rule in failed:
            print(f"  [!] {rule.message}")
        return None
    return password


def create_admin(store: AccountStore, username: str, email: str, fullname: str, password: str) -> Optional[int]:
    """Insert a super admin. Returns the new id, or None if the username or email is taken."""
    admin = Admin(
        fullname=fullname,
        email=email,
        username=username,
        role=Role.super_admin.value,
        hashed_password=hash_password(password),
    )
    try:
        return store.create_admin(admin)
    except IntegrityError:
        return None


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="confreg",
        description="Conference registration administration -- operator tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --username ada --email ada@example.org --fullname "Ada Obi"
  DATABASE_URL=sqlite:////srv/confreg.db python main.py create-admin ...
        """,
    )
    sub = parser.add_subparsers(dest="command")

    create = sub.add_parser("create-admin", help="Create a super admin account")
    create.add_argument("--username", required=True, help="Login username for the admin")
    create.add_argument("--email", required=True, help="Admin email address")
    create.add_argument("--fullname", required=True, help="Display name")

    args = parser.parse_args(argv)

    if args.command != "create-admin":
        parser.print_help()
        return 2

    username = args.username.strip()
    email = args.email.strip()
    fullname = args.fullname.strip()
    if not username or not fullname:
        print("  [!] Username and full name must not be empty.")
        return 1
    if not _EMAIL_RE.match(email):
        print(f"  [!] '{email}' does not look like an email address.")
        return 1

    password = _prompt_password()
    if password is None:
        return 1

    store = AccountStore()
    try:
        admin_id = create_admin(store, username, email, fullname, password)
    finally:
        store.close()

    if admin_id is None:
        print("  [!] An admin with this username or email already exists.")
        return 1
    logger.info("Created super admin %s (%s)", admin_id, username)
    print(f"  Created super admin '{username}' (id {admin_id}).")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
    raise SystemExit(main())
