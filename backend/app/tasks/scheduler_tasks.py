"""
Celery beat task: due-queue sweep for scheduled messages.

Runs the same sweep as the in-process poll loop, for deployments that
drive activation from ``celery beat`` instead.
"""

import asyncio

import structlog

from app.core.config import settings
from app.db.session import create_engine_for, make_session_factory
from app.scheduling.scheduler import activate_due_messages as sweep_due_messages
from app.tasks import celery_app

logger = structlog.get_logger("tasks.scheduler")


async def _sweep() -> int:
    # Fresh engine per run: each asyncio.run gets its own loop.
    engine = create_engine_for(settings.DATABASE_URL)
    try:
        return await sweep_due_messages(make_session_factory(engine))
    finally:
        await engine.dispose()


@celery_app.task(bind=True, name="app.tasks.scheduler_tasks.activate_due_messages")
def activate_due_messages(self) -> int:
    activated = asyncio.run(_sweep())
    if activated:
        logger.info("Scheduled messages activated", task_id=self.request.id, activated=activated)
    return activated
