#!/usr/bin/env python3
"""
Admin Seeder
Creates the single admin account used by POST /api/auth/login.

Usage:
  python seed_admin.py            - Create the admin from ADMIN_USERNAME / ADMIN_PASSWORD, or prompt
  python seed_admin.py --hash     - Print a bcrypt hash without touching the database
"""
import asyncio
import getpass
import sys
from pathlib import Path

# Add project root to path to import saavi_site without installing it
sys.path.insert(0, str(Path(__file__).parent))

from saavi_site.config import settings
from saavi_site.database import AsyncSessionLocal, init_db, close_db
from saavi_site.services.admin_service import AdminExistsError, create_admin_user
from saavi_site.utils.auth import hash_password


def prompt_password() -> str:
    password = getpass.getpass("Enter admin password: ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return ""

    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("\n❌ Error: Passwords do not match")
        return ""

    return password


async def seed(username: str, password: str) -> int:
    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            await create_admin_user(session, username, password)
    except AdminExistsError:
        print("Admin user already exists. Skipping seed.")
        return 0
    finally:
        await close_db()

    print(f"\n✅ Admin user '{username}' created successfully")
    return 0


def main() -> int:
    print("=" * 60)
    print("Saavi Lite Admin Seeder")
    print("=" * 60)
    print()

    if len(sys.argv) > 1 and sys.argv[1] == "--hash":
        password = prompt_password()
        if not password:
            return 1
        print(f"\n{hash_password(password)}")
        return 0

    username = settings.ADMIN_USERNAME or input("Admin username [admin]: ").strip() or "admin"
    password = settings.ADMIN_PASSWORD or prompt_password()
    if not password:
        return 1

    try:
        return asyncio.run(seed(username, password))
    except Exception as e:
        print(f"\n❌ Seed error: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
