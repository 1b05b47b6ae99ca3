"""
IngestionRunner: admission gate and dispatcher for uploads.

At most ``max_concurrent`` uploads are in flight at once; the next one
is refused with IngestionCapacityExceeded (HTTP 503) instead of being
queued.  Accepted uploads are processed by one of three backends:

    process  a short-lived child process per upload (spawned, one task per child)
    celery   the ``ingest_upload`` Celery task, awaited off the event loop
    inline   the current event loop, used by tests and single-process setups
"""

from __future__ import annotations

import asyncio
import multiprocessing
from concurrent.futures import ProcessPoolExecutor

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.constants import IngestionMode
from app.core.errors import IngestionCapacityExceeded
from app.core.logging import get_logger
from app.ingestion.service import (
    IngestionOutcome,
    discard_upload,
    ingest_file,
    run_ingestion_sync,
)

logger = get_logger(__name__)

BUSY_MESSAGE = "Server is busy processing other uploads. Please try again shortly."


class IngestionRunner:
    def __init__(
        self,
        mode: str = IngestionMode.PROCESS,
        max_concurrent: int = 4,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        timeout: float | None = 600,
    ) -> None:
        self.mode = IngestionMode(mode)
        self.max_concurrent = max(1, max_concurrent)
        self.session_factory = session_factory
        self.timeout = timeout
        self._in_flight = 0
        self._pool: ProcessPoolExecutor | None = None

        if self.mode == IngestionMode.INLINE and session_factory is None:
            raise ValueError("inline ingestion needs a session factory")

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def is_busy(self) -> bool:
        """True while at least one upload is being processed."""
        return self._in_flight > 0

    async def submit(self, file_path: str, file_name: str) -> IngestionOutcome:
        """
        Process one saved upload and report its outcome.

        Raises IngestionCapacityExceeded when the runner is full; the
        saved file is removed in that case too.
        """
        if self._in_flight >= self.max_concurrent:
            discard_upload(file_path)
            logger.warning("Upload refused, runner at capacity", file_name=file_name, in_flight=self._in_flight)
            raise IngestionCapacityExceeded(BUSY_MESSAGE)

        self._in_flight += 1
        log = logger.bind(file_name=file_name, mode=self.mode, in_flight=self._in_flight)
        log.info("Ingestion dispatched")
        try:
            return await self._dispatch(file_path, file_name)
        except Exception as exc:
            log.exception("Ingestion worker failed", error=str(exc))
            discard_upload(file_path)
            return IngestionOutcome(success=False, file_name=file_name, error=str(exc) or type(exc).__name__)
        finally:
            self._in_flight -= 1

    async def _dispatch(self, file_path: str, file_name: str) -> IngestionOutcome:
        if self.mode == IngestionMode.INLINE:
            return await ingest_file(file_path, file_name, self.session_factory)

        if self.mode == IngestionMode.CELERY:
            from app.tasks.ingestion_tasks import ingest_upload

            async_result = ingest_upload.delay(file_path, file_name)
            data = await asyncio.to_thread(async_result.get, timeout=self.timeout)
            return IngestionOutcome.from_dict(data)

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._get_pool(), run_ingestion_sync, file_path, file_name)
        data = await asyncio.wait_for(future, timeout=self.timeout)
        return IngestionOutcome.from_dict(data)

    def _get_pool(self) -> ProcessPoolExecutor:
        if self._pool is None:
            self._pool = ProcessPoolExecutor(
                max_workers=self.max_concurrent,
                mp_context=multiprocessing.get_context("spawn"),
                max_tasks_per_child=1,
            )
        return self._pool

    def shutdown(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
