"""
Seed Admin User

Creates the marketplace admin profile, or promotes an existing profile to
admin. The identity-provider account must already exist; its uid links
the profile to it.

Required environment variables:
    ADMIN_EMAIL          Admin's email address
    ADMIN_FIREBASE_UID   uid of the admin's identity-provider account
    ADMIN_NAME           Display name (optional, defaults to "Admin")

Usage:
    cd apps/api
    python scripts/seed_admin.py
"""

import asyncio
import os
import sys

from sqlalchemy import or_, select

from edubridge.core.database import create_engine, create_session_maker
from edubridge.modules.users.models import User, UserRole


async def seed_admin() -> int:
    """Create or promote the admin user. Returns a process exit code."""
    email = os.environ.get("ADMIN_EMAIL")
    firebase_uid = os.environ.get("ADMIN_FIREBASE_UID")
    name = os.environ.get("ADMIN_NAME", "Admin")

    if not email or not firebase_uid:
        print("ADMIN_EMAIL and ADMIN_FIREBASE_UID must be set", file=sys.stderr)
        return 1

    engine = create_engine()
    session_maker = create_session_maker(engine)

    try:
        async with session_maker() as db:
            result = await db.execute(
                select(User).where(or_(User.email == email, User.firebase_uid == firebase_uid))
            )
            existing_user = result.scalar_one_or_none()

            if existing_user:
                if existing_user.role == UserRole.ADMIN:
                    print(f"Admin already exists: {existing_user.email}")
                    print(f"  ID: {existing_user.id}")
                    return 0

                existing_user.role = UserRole.ADMIN
                await db.commit()
                print(f"Promoted {existing_user.email} to admin")
                print(f"  ID: {existing_user.id}")
                return 0

            admin_user = User(
                firebase_uid=firebase_uid,
                email=email,
                name=name,
                role=UserRole.ADMIN,
            )
            db.add(admin_user)
            await db.commit()
            await db.refresh(admin_user)

            print("Admin created successfully!")
            print(f"  Email: {email}")
            print(f"  Name: {name}")
            print(f"  ID: {admin_user.id}")
            return 0
    finally:
        await engine.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
