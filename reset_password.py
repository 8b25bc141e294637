#!/usr/bin/env python3
"""
Reset a user's password in the equipment reservation store.

This script does not read or reveal any existing password.  It sets a
new PBKDF2 hash for the user with the given email, in place, inside the
``users`` collection of the SQLite store.

Usage:
    python reset_password.py --db ./equipment_reservations.db --email admin@escola.edu.br --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import os
import sys
from typing import List, Optional

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.core.db import reset_store
from equipment_reservation_api.app.services.user_service import UserService


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Reset a user's password in the reservation store.")
    ap.add_argument("--db", required=True, help="Path to the SQLite store (e.g., ./equipment_reservations.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        return 1

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must have at least 6 characters.", file=sys.stderr)
        return 1

    settings.database_url = os.path.abspath(args.db)
    reset_store()
    if not asyncio.run(UserService.set_password(args.email, new_password)):
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2
    print(f"[+] Password updated for user: {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
