#!/usr/bin/env python3
"""
Create (or reset) the bootstrap superadmin account.

Usage:
  python scripts/create_superadmin.py <login_id> [display_name]
  # Password is read from SUPERADMIN_PASSWORD or prompted for.
  # Requires DATABASE_URL and SECRET_KEY in .env (or export)

Running it again for the same login id resets the password and restores
the superadmin role.
"""
import argparse
import asyncio
import getpass
import os
import sys

from dotenv import load_dotenv

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_root, ".env"))

# Add project root to path
sys.path.insert(0, _root)

from app.core.logging import setup_logging  # noqa: E402
from app.database import AsyncSessionLocal, close_db  # noqa: E402
from app.services.admin_service import AdminService  # noqa: E402

MIN_PASSWORD_LENGTH = 8


async def run(login_id: str, password: str, display_name: str) -> None:
    async with AsyncSessionLocal() as db:
        admin = await AdminService.ensure_superadmin(db, login_id, password, display_name)
        print(f"SUCCESS: superadmin {admin.login_id} ({admin.id}) is ready.")
    await close_db()


def main():
    parser = argparse.ArgumentParser(description="Create or reset the superadmin account")
    parser.add_argument("login_id")
    parser.add_argument("display_name", nargs="?", default="Superadmin")
    args = parser.parse_args()

    password = os.getenv("SUPERADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"ERROR: password must be at least {MIN_PASSWORD_LENGTH} characters.")
        sys.exit(1)

    setup_logging()
    asyncio.run(run(args.login_id.strip(), password, args.display_name))


if __name__ == "__main__":
    main()
