"""IngestionRun repository: audit rows for uploaded files."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import PipelineStatus
from app.db.models.base import as_utc, utcnow
from app.db.models.ingestion_run import IngestionRun


async def start_run(db: AsyncSession, file_name: str) -> IngestionRun:
    run = IngestionRun(file_name=file_name, status=PipelineStatus.RUNNING.value, started_at=utcnow())
    db.add(run)
    await db.flush()
    return run


async def finish_run(
    db: AsyncSession,
    run_id: uuid.UUID,
    *,
    status: str,
    detected_format: str | None,
    rows_total: int,
    stats: dict[str, Any],
    error_message: str | None = None,
) -> IngestionRun | None:
    run = await db.get(IngestionRun, run_id)
    if run is None:
        return None
    completed_at = utcnow()
    run.status = status
    run.detected_format = detected_format
    run.rows_total = rows_total
    run.stats = stats
    run.error_message = error_message
    run.completed_at = completed_at
    run.duration_ms = int((completed_at - as_utc(run.started_at)).total_seconds() * 1000)
    await db.flush()
    return run


async def list_runs(db: AsyncSession, *, limit: int = 50, offset: int = 0) -> list[IngestionRun]:
    stmt = select(IngestionRun).order_by(desc(IngestionRun.started_at)).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return list(result.scalars().all())
