"""Validation and persistence for new scheduled messages."""

from __future__ import annotations

from datetime import datetime, timezone

from dateutil import parser as date_parser
from dateutil import tz as date_tz
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import RequestValidationFailed
from app.db.models.base import utcnow
from app.db.models.scheduled_message import ScheduledMessage
from app.repositories import scheduled_messages as message_repository

MISSING_FIELDS_MESSAGE = "Message, day, and time are required"
INVALID_DAY_OR_TIME_MESSAGE = "Invalid day or time"
NOT_IN_FUTURE_MESSAGE = "Scheduled time must be in the future"


def compose_activation_time(day: str, time: str, tz: str = "UTC") -> datetime:
    """
    Combine a ``day`` and ``time`` string into an aware UTC datetime.

    Values without an explicit offset are read in the ``tz`` zone, which
    comes from server configuration; an unknown zone is a ValueError.
    """
    zone = date_tz.gettz(tz)
    if zone is None:
        raise ValueError(f"Unknown timezone: {tz}")
    try:
        parsed = date_parser.parse(f"{day.strip()} {time.strip()}")
    except (ValueError, OverflowError) as exc:
        raise RequestValidationFailed(INVALID_DAY_OR_TIME_MESSAGE) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


async def schedule_message(
    db: AsyncSession,
    *,
    message: str | None,
    day: str | None,
    time: str | None,
    tz: str = "UTC",
    now: datetime | None = None,
) -> ScheduledMessage:
    """Validate the request and persist a pending message.  Nothing is written on error."""
    if not (message and message.strip()) or not (day and day.strip()) or not (time and time.strip()):
        raise RequestValidationFailed(MISSING_FIELDS_MESSAGE)

    activation = compose_activation_time(day, time, tz)
    if activation <= (now or utcnow()):
        raise RequestValidationFailed(NOT_IN_FUTURE_MESSAGE)

    return await message_repository.create_message(db, message=message, scheduled_date=activation)
