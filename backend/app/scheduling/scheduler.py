"""
MessageScheduler: activates scheduled messages when their time comes.

Two mechanisms drive activation:

  * a single-shot ``loop.call_later`` timer per message, armed when the
    message is created and re-armed for every pending row on startup;
  * a poll loop that sweeps the due-queue (pending rows whose
    ``scheduled_date`` has passed) so a lost timer never loses a message.

Activation is a conditional update, so a message armed twice, or hit by
both the timer and the sweep, is still completed exactly once.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import get_logger
from app.db.models.base import as_utc, utcnow
from app.repositories import scheduled_messages as message_repository

logger = get_logger(__name__)


async def activate_message(
    session_factory: async_sessionmaker[AsyncSession],
    message_id: uuid.UUID,
    now: datetime | None = None,
) -> bool:
    """
    Complete one pending message.  Returns True if this call completed it.

    If the update raises, the message is marked failed instead.
    """
    try:
        async with session_factory() as session:
            completed = await message_repository.mark_completed(session, message_id, at=now)
            await session.commit()
    except Exception as exc:
        logger.exception("Scheduled message activation failed", message_id=str(message_id), error=str(exc))
        await _mark_failed(session_factory, message_id)
        return False

    if completed:
        logger.info("Scheduled message activated", message_id=str(message_id))
    return completed


async def _mark_failed(session_factory: async_sessionmaker[AsyncSession], message_id: uuid.UUID) -> None:
    try:
        async with session_factory() as session:
            await message_repository.mark_failed(session, message_id)
            await session.commit()
    except Exception as exc:
        logger.error("Could not mark scheduled message as failed", message_id=str(message_id), error=str(exc))


async def activate_due_messages(
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> int:
    """Sweep the due-queue.  Returns how many messages were completed."""
    now = now or utcnow()
    async with session_factory() as session:
        due_ids = await message_repository.list_due_ids(session, now)

    activated = 0
    for message_id in due_ids:
        if await activate_message(session_factory, message_id):
            activated += 1
    if due_ids:
        logger.info("Due-queue swept", due=len(due_ids), activated=activated)
    return activated


class MessageScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        poll_interval: float = 30.0,
    ) -> None:
        self.session_factory = session_factory
        self.poll_interval = poll_interval
        self._timers: dict[uuid.UUID, asyncio.TimerHandle] = {}
        self._activations: set[asyncio.Task] = set()
        self._poll_task: asyncio.Task | None = None

    @property
    def armed(self) -> int:
        """Number of timers waiting to fire."""
        return len(self._timers)

    def start(self) -> None:
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_loop(), name="scheduler-poll")
        logger.info("Message scheduler started", poll_interval=self.poll_interval)

    def arm(self, message_id: uuid.UUID, when: datetime) -> None:
        """Fire activation for ``message_id`` at ``when`` (immediately if already past)."""
        loop = asyncio.get_running_loop()
        delay = max(0.0, (as_utc(when) - utcnow()).total_seconds())

        previous = self._timers.pop(message_id, None)
        if previous is not None:
            previous.cancel()
        self._timers[message_id] = loop.call_later(delay, self._fire, message_id)
        logger.debug("Scheduled message armed", message_id=str(message_id), delay_seconds=round(delay, 3))

    def _fire(self, message_id: uuid.UUID) -> None:
        self._timers.pop(message_id, None)
        task = asyncio.create_task(activate_message(self.session_factory, message_id))
        self._activations.add(task)
        task.add_done_callback(self._activations.discard)

    async def load_pending(self) -> int:
        """Re-arm every pending message.  Overdue ones fire right away."""
        async with self.session_factory() as session:
            pending = await message_repository.list_pending(session)
        for message in pending:
            self.arm(message.id, message.scheduled_date)
        logger.info("Loaded pending messages", count=len(pending))
        return len(pending)

    async def sweep(self, now: datetime | None = None) -> int:
        return await activate_due_messages(self.session_factory, now)

    async def drain(self) -> None:
        """Wait for activations that have already fired."""
        if self._activations:
            await asyncio.gather(*list(self._activations), return_exceptions=True)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.sweep()
            except Exception as exc:
                logger.exception("Due-queue sweep failed", error=str(exc))

    async def stop(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

        await self.drain()
        logger.info("Message scheduler stopped")
