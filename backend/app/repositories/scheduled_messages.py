"""
ScheduledMessage repository.

Status transitions are conditional updates (`WHERE status = 'pending'`)
so a message is completed at most once even when the in-memory timer
and the due-queue sweep race each other.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import MessageStatus
from app.db.models.base import utcnow
from app.db.models.scheduled_message import ScheduledMessage


async def create_message(db: AsyncSession, *, message: str, scheduled_date: datetime) -> ScheduledMessage:
    record = ScheduledMessage(
        message=message,
        scheduled_date=scheduled_date,
        status=MessageStatus.PENDING.value,
    )
    db.add(record)
    await db.flush()
    return record


async def get_message(db: AsyncSession, message_id: uuid.UUID) -> ScheduledMessage | None:
    return await db.get(ScheduledMessage, message_id)


async def list_messages(
    db: AsyncSession,
    *,
    status: str | None = None,
    offset: int = 0,
    limit: int = 100,
) -> list[ScheduledMessage]:
    stmt = select(ScheduledMessage).order_by(ScheduledMessage.scheduled_date)
    if status is not None:
        stmt = stmt.where(ScheduledMessage.status == status)
    stmt = stmt.offset(offset).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_pending(db: AsyncSession) -> list[ScheduledMessage]:
    stmt = (
        select(ScheduledMessage)
        .where(ScheduledMessage.status == MessageStatus.PENDING.value)
        .order_by(ScheduledMessage.scheduled_date)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def mark_completed(db: AsyncSession, message_id: uuid.UUID, at: datetime | None = None) -> bool:
    """Flip one pending message to completed.  False if it was not pending."""
    stmt = (
        update(ScheduledMessage)
        .where(
            ScheduledMessage.id == message_id,
            ScheduledMessage.status == MessageStatus.PENDING.value,
        )
        .values(status=MessageStatus.COMPLETED.value, inserted_at=at or utcnow(), updated_at=utcnow())
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount == 1


async def mark_failed(db: AsyncSession, message_id: uuid.UUID) -> bool:
    stmt = (
        update(ScheduledMessage)
        .where(
            ScheduledMessage.id == message_id,
            ScheduledMessage.status == MessageStatus.PENDING.value,
        )
        .values(status=MessageStatus.FAILED.value, updated_at=utcnow())
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount == 1


async def list_due_ids(db: AsyncSession, now: datetime) -> list[uuid.UUID]:
    """Pending messages whose activation time is at or before `now`."""
    stmt = (
        select(ScheduledMessage.id)
        .where(
            ScheduledMessage.status == MessageStatus.PENDING.value,
            ScheduledMessage.scheduled_date <= now,
        )
        .order_by(ScheduledMessage.scheduled_date)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
