"""Scheduled message endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_scheduler
from app.api.schemas import ScheduledMessageResponse, ScheduleMessageRequest, ScheduleMessageResponse
from app.core.config import settings
from app.core.constants import MessageStatus
from app.core.errors import RecordNotFound
from app.core.logging import get_logger
from app.repositories import scheduled_messages as message_repository
from app.scheduling.scheduler import MessageScheduler
from app.scheduling.service import schedule_message

logger = get_logger(__name__)

router = APIRouter(tags=["Scheduled messages"])


@router.post("/schedule-message", response_model=ScheduleMessageResponse)
async def create_scheduled_message(
    body: ScheduleMessageRequest,
    db: AsyncSession = Depends(get_db),
    scheduler: MessageScheduler = Depends(get_scheduler),
):
    """
    Store a message that becomes active at ``day`` + ``time``.

    The row is committed before its timer is armed so the activation
    always finds it.
    """
    record = await schedule_message(
        db,
        message=body.message,
        day=body.day,
        time=body.time,
        tz=settings.TIMEZONE,
    )
    await db.commit()
    scheduler.arm(record.id, record.scheduled_date)
    logger.info("Message scheduled", message_id=str(record.id), scheduled_date=record.scheduled_date.isoformat())

    return ScheduleMessageResponse(
        message="Message scheduled successfully",
        scheduled_message=ScheduledMessageResponse.model_validate(record),
    )


@router.get("/scheduled-messages", response_model=list[ScheduledMessageResponse])
async def list_scheduled_messages(
    status: MessageStatus | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await message_repository.list_messages(
        db,
        status=status.value if status else None,
        offset=offset,
        limit=limit,
    )


@router.get("/scheduled-messages/{message_id}", response_model=ScheduledMessageResponse)
async def get_scheduled_message(message_id: UUID, db: AsyncSession = Depends(get_db)):
    record = await message_repository.get_message(db, message_id)
    if record is None:
        raise RecordNotFound("Scheduled message not found")
    return record
