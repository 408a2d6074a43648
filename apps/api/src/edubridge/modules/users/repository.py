"""
User Repository

Database operations for user management. Methods flush but never commit;
the calling service owns the transaction.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        firebase_uid: str,
        email: str,
        name: str,
        role: UserRole,
        **profile: Any,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            firebase_uid: Identity provider user id (unique, immutable)
            email: User's email address (unique)
            name: Display name
            role: User's role
            **profile: Optional profile fields (phone, photo_url, ...)

        Returns:
            Created User instance
        """
        user = User(
            firebase_uid=firebase_uid,
            email=email,
            name=name,
            role=role,
            **profile,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_firebase_uid(db: AsyncSession, firebase_uid: str) -> User | None:
        """Get a user by identity provider uid."""
        result = await db.execute(select(User).where(User.firebase_uid == firebase_uid))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def exists_by_email_or_uid(db: AsyncSession, email: str, firebase_uid: str) -> bool:
        """Check whether an email or identity uid is already registered."""
        result = await db.execute(
            select(User.id).where(or_(User.email == email, User.firebase_uid == firebase_uid))
        )
        return result.first() is not None

    @staticmethod
    async def list_all(db: AsyncSession) -> list[User]:
        """All users, newest first."""
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_by_role(db: AsyncSession, role: UserRole) -> list[User]:
        """Users holding ``role``, newest first."""
        result = await db.execute(
            select(User).where(User.role == role).order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def update(db: AsyncSession, user: User, **fields: Any) -> User:
        """Apply field changes to a loaded user."""
        for key, value in fields.items():
            setattr(user, key, value)

        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def delete(db: AsyncSession, user_id: UUID) -> bool:
        """
        Delete a user.

        Returns:
            True if a row was deleted
        """
        result = await db.execute(delete(User).where(User.id == user_id))
        return result.rowcount > 0
