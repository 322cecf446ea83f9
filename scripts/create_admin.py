#!/usr/bin/env python3
"""
Create the administrator account.

Only one admin can exist; the script does nothing if there already is one.
Credentials come from the environment (or .env):

    ADMIN_USERNAME   default "admin"
    ADMIN_EMAIL      required
    ADMIN_PASSWORD   required, at least 8 characters

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python scripts/create_admin.py
"""

import asyncio
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from dotenv import load_dotenv  # noqa: E402
from tournament_api.database.db import AsyncSessionLocal, init_database, dispose_engine  # noqa: E402
from tournament_api.database.models import UserRole  # noqa: E402
from tournament_api.services import auth_service, user_service  # noqa: E402
from tournament_api.utils.exceptions import AppError  # noqa: E402

load_dotenv()


async def main() -> int:
    """Create the admin user. Returns the process exit code."""
    username = os.getenv("ADMIN_USERNAME", "admin")
    email = os.getenv("ADMIN_EMAIL", "")
    password = os.getenv("ADMIN_PASSWORD", "")

    if not auth_service.is_valid_email(email):
        print("Error: ADMIN_EMAIL must be set to a valid email address")
        return 1
    password_error = auth_service.validate_password(password)
    if password_error:
        print(f"Error: {password_error}")
        return 1

    await init_database()
    try:
        async with AsyncSessionLocal() as session:
            if await user_service.admin_exists(session):
                print("Admin user already exists in the database")
                return 0
            try:
                user = await user_service.create_user(
                    session,
                    username=username,
                    email=auth_service.normalize_email(email),
                    password_hash=auth_service.hash_password(password),
                    role=UserRole.ADMIN,
                )
            except AppError as e:
                print(f"Error creating admin user: {e.message}")
                return 1
    finally:
        await dispose_engine()

    print("\nAdmin user created successfully!")
    print(f"  Username: {user['username']}")
    print(f"  Email:    {user['email']}")
    print("\nPlease change the password after first login")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
