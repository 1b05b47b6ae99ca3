"""PolicyCarrier repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.policy_carrier import PolicyCarrier


async def get_or_create_carrier(db: AsyncSession, company_name: str) -> tuple[PolicyCarrier, bool]:
    result = await db.execute(
        select(PolicyCarrier).where(PolicyCarrier.company_name == company_name)
    )
    carrier = result.scalar_one_or_none()
    if carrier is not None:
        return carrier, False
    carrier = PolicyCarrier(company_name=company_name)
    db.add(carrier)
    await db.flush()
    return carrier, True
