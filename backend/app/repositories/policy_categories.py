"""PolicyCategory repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.policy_category import PolicyCategory


async def get_or_create_category(db: AsyncSession, category_name: str) -> tuple[PolicyCategory, bool]:
    result = await db.execute(
        select(PolicyCategory).where(PolicyCategory.category_name == category_name)
    )
    category = result.scalar_one_or_none()
    if category is not None:
        return category, False
    category = PolicyCategory(category_name=category_name)
    db.add(category)
    await db.flush()
    return category, True
