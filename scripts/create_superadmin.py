#!/usr/bin/env python3
"""
Create a super-admin account for the portal.

Reads credentials from .env:
    ADMIN_EMAIL      — super-admin email (required)
    ADMIN_PASSWORD   — super-admin password (required)
    ADMIN_NAME       — display name (optional, defaults to "Super Admin")
    DATABASE_URL     — target database (required)

Usage:
    python -m scripts.create_superadmin
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from portal.admins.service import ensure_super_admin  # noqa: E402
from portal.exceptions import EmailAlreadyExists  # noqa: E402
from portal_shared.database import get_async_session_factory  # noqa: E402


async def main() -> None:
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        print("Error: ADMIN_EMAIL and ADMIN_PASSWORD must be set in .env")
        sys.exit(1)
    full_name = os.getenv("ADMIN_NAME", "Super Admin")
    db_url = os.environ["DATABASE_URL"]

    session_factory = get_async_session_factory(db_url)
    try:
        async with session_factory() as session:
            try:
                super_admin, created = await ensure_super_admin(
                    session, email=email, password=password, full_name=full_name
                )
            except EmailAlreadyExists:
                print(f"Error: {email} already belongs to an admin or doctor account.")
                sys.exit(1)
            await session.commit()
    finally:
        await session_factory.kw["bind"].dispose()

    if created:
        print(f"Super admin created: {email} (id={super_admin.id})")
    else:
        print(f"Super admin {email} already exists (id={super_admin.id}). Nothing to do.")


if __name__ == "__main__":
    asyncio.run(main())
