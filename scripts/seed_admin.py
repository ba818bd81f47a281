"""
Seed Admin User

Creates the initial admissions office admin account.
Run this script once to set up the admin account.

Credentials are read from the environment:
    SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD,
    SEED_ADMIN_FIRST_NAME (default "Admissions"), SEED_ADMIN_LAST_NAME (default "Admin")

Usage:
    python scripts/seed_admin.py
"""

import asyncio
import os
import sys

from admission_portal.core.config import settings
from admission_portal.core.database import Database
from admission_portal.core.security import hash_password
from admission_portal.modules.users.models import UserRole
from admission_portal.modules.users.repository import UserRepository


async def seed_admin() -> int:
    """Create the admin user if it doesn't exist."""
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    first_name = os.getenv("SEED_ADMIN_FIRST_NAME", "Admissions")
    last_name = os.getenv("SEED_ADMIN_LAST_NAME", "Admin")

    if not email or not password:
        print("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
        return 1

    database = Database(settings.database_url)
    await database.connect()

    try:
        async with database.session() as db:
            existing_user = await UserRepository.get_by_email(db, email)
            if existing_user:
                print(f"Admin already exists: {email}")
                print(f"  ID: {existing_user.id}")
                print(f"  Role: {existing_user.role.value}")
                return 0

            admin_user = await UserRepository.create(
                db,
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=UserRole.ADMIN,
                is_verified=True,  # Pre-verified
            )
            await db.commit()

            print("Admin created successfully!")
            print(f"  Email: {admin_user.email}")
            print(f"  Name: {admin_user.full_name}")
            print(f"  ID: {admin_user.id}")
    finally:
        await database.disconnect()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
