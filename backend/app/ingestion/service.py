"""
Ingestion service: runs the ingestion flow for one uploaded file.

`ingest_file` is the async core: it records an IngestionRun, runs the
pipeline and always deletes the uploaded file.  `run_ingestion_sync` is
the blocking entry point used by isolated workers (a child process or
a Celery worker): it builds a fresh engine for its own event loop, runs
`ingest_file` and returns a JSON-serialisable dict.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.db.session import create_engine_for, make_session_factory
from app.pipeline.context import IngestionStats, PipelineContext
from app.pipeline.engine import PipelineEngine
from app.pipeline.flow import ingestion_flow
from app.repositories import ingestion_runs as run_repository

logger = get_logger(__name__)


@dataclass
class IngestionOutcome:
    """What the upload endpoint reports back for one file."""

    success: bool
    file_name: str
    rows: int = 0
    stats: IngestionStats = field(default_factory=IngestionStats)
    error: str | None = None
    run_id: str | None = None

    @property
    def summary(self) -> str:
        return f"Processed {self.rows} rows"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "file_name": self.file_name,
            "rows": self.rows,
            "stats": self.stats.to_dict(),
            "error": self.error,
            "run_id": self.run_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngestionOutcome":
        return cls(
            success=data["success"],
            file_name=data.get("file_name", ""),
            rows=data.get("rows", 0),
            stats=IngestionStats.from_dict(data.get("stats") or {}),
            error=data.get("error"),
            run_id=data.get("run_id"),
        )


def discard_upload(file_path: str) -> None:
    """Delete a transient upload; a file that is already gone is fine."""
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not delete uploaded file", file_path=file_path, error=str(exc))


async def _record_start(
    session_factory: async_sessionmaker[AsyncSession],
    file_name: str,
) -> uuid.UUID | None:
    try:
        async with session_factory() as session:
            run = await run_repository.start_run(session, file_name)
            await session.commit()
            return run.id
    except Exception as exc:
        logger.error("Failed to record ingestion run start (non-fatal)", error=str(exc))
        return None


async def _record_finish(
    session_factory: async_sessionmaker[AsyncSession],
    run_id: uuid.UUID | None,
    ctx: PipelineContext,
    status: str,
    error: str | None,
) -> None:
    if run_id is None:
        return
    try:
        async with session_factory() as session:
            await run_repository.finish_run(
                session,
                run_id,
                status=status,
                detected_format=ctx.detected_format,
                rows_total=len(ctx.rows),
                stats=ctx.stats.to_dict(),
                error_message=error,
            )
            await session.commit()
    except Exception as exc:
        logger.error("Failed to record ingestion run result (non-fatal)", run_id=str(run_id), error=str(exc))


async def ingest_file(
    file_path: str,
    file_name: str,
    session_factory: async_sessionmaker[AsyncSession],
) -> IngestionOutcome:
    """Run the ingestion flow for one file.  The file is deleted afterwards."""
    log = logger.bind(file_name=file_name)
    ctx = PipelineContext(file_path=file_path, file_name=file_name, session_factory=session_factory)

    try:
        run_id = await _record_start(session_factory, file_name)
        result = await PipelineEngine().run(ctx, ingestion_flow())
        await _record_finish(session_factory, run_id, ctx, result.status, result.error)
    finally:
        discard_upload(file_path)

    if not result.succeeded:
        log.warning("File ingestion failed", error=result.error, summary=result.context_summary)
        return IngestionOutcome(
            success=False,
            file_name=file_name,
            rows=len(ctx.rows),
            stats=ctx.stats,
            error=result.error or "File processing failed",
            run_id=str(run_id) if run_id else None,
        )

    log.info(
        "File ingestion finished",
        rows=len(ctx.rows),
        row_errors=len(ctx.stats.errors),
        duration_ms=result.total_duration_ms,
    )
    return IngestionOutcome(
        success=True,
        file_name=file_name,
        rows=len(ctx.rows),
        stats=ctx.stats,
        run_id=str(run_id) if run_id else None,
    )


def run_ingestion_sync(file_path: str, file_name: str, database_url: str | None = None) -> dict[str, Any]:
    """
    Blocking ingestion for an isolated worker.

    Uses a FRESH engine per call so the worker never shares a connection
    pool or event loop with the request-handling process.
    """
    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")

    async def _run() -> IngestionOutcome:
        engine = create_engine_for(database_url or settings.DATABASE_URL)
        try:
            return await ingest_file(file_path, file_name, make_session_factory(engine))
        finally:
            await engine.dispose()

    return asyncio.run(_run()).to_dict()
