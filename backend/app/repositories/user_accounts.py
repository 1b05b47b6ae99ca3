"""UserAccount repository."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user_account import UserAccount


async def get_or_create_account(
    db: AsyncSession,
    account_name: str,
    user_id: uuid.UUID,
) -> tuple[UserAccount, bool]:
    """Accounts are keyed by (account_name, user_id)."""
    stmt = select(UserAccount).where(
        UserAccount.account_name == account_name,
        UserAccount.user_id == user_id,
    )
    result = await db.execute(stmt)
    account = result.scalars().first()
    if account is not None:
        return account, False
    account = UserAccount(account_name=account_name, user_id=user_id)
    db.add(account)
    await db.flush()
    return account, True
