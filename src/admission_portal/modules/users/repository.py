"""
User Repository

Database operations for user management.
"""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.STUDENT,
        phone: str | None = None,
        is_active: bool = True,
        is_verified: bool = False,
    ) -> User:
        """
        Create a new user record.

        The caller owns the transaction; the row is flushed, not committed.

        Returns:
            Created User instance
        """
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
            is_active=is_active,
            is_verified=is_verified,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Case-insensitive lookup by email address."""
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def find_conflicting(
        db: AsyncSession,
        *,
        email: str | None = None,
        phone: str | None = None,
        exclude_id: UUID | None = None,
    ) -> User | None:
        """
        Find another user already holding this email or phone.

        Args:
            email: Email address to check
            phone: Phone number to check
            exclude_id: Ignore this user (for profile updates)
        """
        conditions = []
        if email:
            conditions.append(func.lower(User.email) == email.lower())
        if phone:
            conditions.append(User.phone == phone)
        if not conditions:
            return None

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)

        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_verified(db: AsyncSession, user: User) -> User:
        user.is_verified = True
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_phone(db: AsyncSession, phone: str) -> User | None:
        result = await db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_password(db: AsyncSession, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        await db.commit()
        await db.refresh(user)
        return user
