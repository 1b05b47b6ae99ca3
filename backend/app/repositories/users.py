"""
User repository containing all data-access operations for the users table.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user import User


def _normalize_email(email: str) -> str:
    return email.lower().strip()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email address (case-insensitive)."""
    stmt = select(User).where(User.email == _normalize_email(email))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, **profile: Any) -> User:
    """Insert a user.  `profile` holds the User column values."""
    profile["email"] = _normalize_email(profile["email"])
    user = User(**profile)
    db.add(user)
    await db.flush()
    return user


async def get_or_create_user(
    db: AsyncSession,
    email: str,
    build_profile: Callable[[], dict[str, Any]],
) -> tuple[User, bool]:
    """Deduplicate by email.

    An existing user is returned unchanged and `build_profile` is never
    called, so the row's other profile fields are not looked at.
    """
    user = await get_user_by_email(db, email)
    if user is not None:
        return user, False
    return await create_user(db, **build_profile()), True


async def find_user_by_first_name(db: AsyncSession, fragment: str) -> User | None:
    """First user whose first name contains `fragment`, ignoring case.

    The fragment is matched literally; LIKE wildcards in it are escaped.
    """
    stmt = (
        select(User)
        .where(func.lower(User.first_name).contains(fragment.lower(), autoescape=True))
        .order_by(User.created_at)
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())
