"""
ScheduledMessage: a message that becomes active at a future instant.

Status moves pending → completed when the activation time is reached
(inserted_at records when that happened).  A message whose activation
raised is marked failed.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MessageStatus
from app.db.models.base import Base, TimestampMixin, generate_uuid


class ScheduledMessage(TimestampMixin, Base):
    __tablename__ = "scheduled_messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MessageStatus.PENDING.value, index=True
    )  # pending | completed | failed
    inserted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ScheduledMessage id={self.id} status={self.status} at={self.scheduled_date}>"
