"""Scheduled message schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.api.schemas.base import ApiModel


class ScheduleMessageRequest(ApiModel):
    # Presence is checked by the scheduling service so every missing
    # field produces the same error message.
    message: str | None = None
    day: str | None = None
    time: str | None = None


class ScheduledMessageResponse(ApiModel):
    id: UUID
    message: str
    scheduled_date: datetime
    status: str
    inserted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ScheduleMessageResponse(ApiModel):
    message: str
    scheduled_message: ScheduledMessageResponse
