"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.ingestion.runner import IngestionRunner
from app.scheduling.scheduler import MessageScheduler


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """The session factory the application was started with."""
    return request.app.state.session_factory


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, roll back on error."""
    async with get_session_factory(request)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_ingestion_runner(request: Request) -> IngestionRunner:
    return request.app.state.ingestion_runner


def get_scheduler(request: Request) -> MessageScheduler:
    return request.app.state.scheduler
