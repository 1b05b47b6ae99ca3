"""
Policy repository: lookups, inserts and the per-user policy report.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.models.policy import Policy
from app.db.models.policy_carrier import PolicyCarrier
from app.db.models.policy_category import PolicyCategory
from app.db.models.user import User

_WITH_REFERENCES = (
    selectinload(Policy.category),
    selectinload(Policy.carrier),
    selectinload(Policy.user),
)


async def get_policy_by_number(db: AsyncSession, policy_number: str) -> Policy | None:
    result = await db.execute(select(Policy).where(Policy.policy_number == policy_number))
    return result.scalar_one_or_none()


async def get_or_create_policy(
    db: AsyncSession,
    *,
    policy_number: str,
    policy_start_date: datetime,
    policy_end_date: datetime,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    company_id: uuid.UUID,
) -> tuple[Policy, bool]:
    """Policies are keyed by policy_number; an existing one is left untouched."""
    policy = await get_policy_by_number(db, policy_number)
    if policy is not None:
        return policy, False
    policy = Policy(
        policy_number=policy_number,
        policy_start_date=policy_start_date,
        policy_end_date=policy_end_date,
        user_id=user_id,
        category_id=category_id,
        company_id=company_id,
    )
    db.add(policy)
    await db.flush()
    return policy, True


async def list_policies(db: AsyncSession) -> list[Policy]:
    """All policies with category, carrier and user loaded."""
    stmt = select(Policy).options(*_WITH_REFERENCES).order_by(Policy.created_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_policies_for_user(db: AsyncSession, user_id: uuid.UUID) -> list[Policy]:
    stmt = (
        select(Policy)
        .where(Policy.user_id == user_id)
        .options(*_WITH_REFERENCES)
        .order_by(Policy.policy_start_date)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def aggregate_policies_by_user(db: AsyncSession) -> list[dict[str, Any]]:
    """
    Group every policy under its owning user.

    One joined SELECT (policies ⋈ users ⋈ categories ⋈ carriers) ordered by
    user; the rows are folded into one summary per user carrying the
    policy count, the distinct category / carrier names and the policy
    list.  Sorted by policy count descending, then user name.
    """
    stmt = (
        select(
            Policy.user_id,
            User.first_name,
            User.last_name,
            User.email,
            Policy.policy_number,
            Policy.policy_start_date,
            Policy.policy_end_date,
            PolicyCategory.category_name,
            PolicyCarrier.company_name,
        )
        .join(User, Policy.user_id == User.id)
        .join(PolicyCategory, Policy.category_id == PolicyCategory.id)
        .join(PolicyCarrier, Policy.company_id == PolicyCarrier.id)
        .order_by(Policy.user_id, Policy.policy_start_date, Policy.policy_number)
    )
    result = await db.execute(stmt)

    groups: dict[uuid.UUID, dict[str, Any]] = {}
    for row in result.all():
        group = groups.get(row.user_id)
        if group is None:
            group = groups[row.user_id] = {
                "user_id": row.user_id,
                "user_name": f"{row.first_name} {row.last_name}",
                "user_email": row.email,
                "total_policies": 0,
                "policies": [],
                "categories": [],
                "carriers": [],
            }
        group["total_policies"] += 1
        group["policies"].append({
            "policy_number": row.policy_number,
            "start_date": row.policy_start_date,
            "end_date": row.policy_end_date,
            "category": row.category_name,
            "carrier": row.company_name,
        })
        if row.category_name not in group["categories"]:
            group["categories"].append(row.category_name)
        if row.company_name not in group["carriers"]:
            group["carriers"].append(row.company_name)

    return sorted(groups.values(), key=lambda g: (-g["total_policies"], g["user_name"]))
