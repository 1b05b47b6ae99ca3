"""FastAPI application entry point."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.routes import directory, health, messages, policies, uploads
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import get_logger, setup_logging
from app.core.watchdog import CpuWatchdog
from app.ingestion.runner import IngestionRunner
from app.scheduling.scheduler import MessageScheduler

STATIC_DIR = Path(__file__).parent / "static"
API_PREFIX = "/api"


def create_app(session_factory: async_sessionmaker[AsyncSession] | None = None) -> FastAPI:
    """
    Build the application.

    ``session_factory`` defaults to the engine configured from Settings;
    tests pass their own.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle hooks."""
        setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
        logger = get_logger("startup")

        owns_engine = session_factory is None
        if owns_engine:
            from app.db.session import async_session, engine
            factory = async_session
        else:
            factory = session_factory

        app.state.started_at = time.monotonic()
        app.state.session_factory = factory

        runner = IngestionRunner(
            mode=settings.INGESTION_MODE,
            max_concurrent=settings.MAX_CONCURRENT_INGESTIONS,
            session_factory=factory,
            timeout=settings.INGESTION_TIMEOUT_SECONDS,
        )
        app.state.ingestion_runner = runner

        scheduler = MessageScheduler(factory, poll_interval=settings.SCHEDULER_POLL_INTERVAL_SECONDS)
        app.state.scheduler = scheduler
        try:
            await scheduler.load_pending()
        except Exception as exc:
            # The poll loop picks overdue rows up once the database is reachable.
            logger.error("Could not load pending messages", error=str(exc))
        scheduler.start()

        watchdog = None
        if settings.WATCHDOG_ENABLED:
            watchdog = CpuWatchdog(
                runner,
                threshold=settings.WATCHDOG_CPU_THRESHOLD,
                interval=settings.WATCHDOG_INTERVAL_SECONDS,
            )
            watchdog.start()

        logger.info(
            "Application starting",
            env=settings.APP_ENV,
            ingestion_mode=settings.INGESTION_MODE,
            watchdog=settings.WATCHDOG_ENABLED,
        )
        yield
        logger.info("Application shutting down")

        if watchdog is not None:
            await watchdog.stop()
        await scheduler.stop()
        runner.shutdown()
        if owns_engine:
            await engine.dispose()

    app = FastAPI(
        title="Policy Records API",
        description="Policy records ingestion, reporting and message scheduling",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(uploads.router, prefix=API_PREFIX)
    app.include_router(policies.router, prefix=API_PREFIX)
    app.include_router(directory.router, prefix=API_PREFIX)
    app.include_router(messages.router, prefix=API_PREFIX)
    app.include_router(health.router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Upload form and quick links."""
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()
