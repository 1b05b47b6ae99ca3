"""Base class for ingestion steps."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from app.core.constants import StepStatus
from app.pipeline.context import PipelineContext, StepResult


class PipelineStep(ABC):
    """
    One stage of an upload's ingestion (detect, extract, upsert).

    A step reads what earlier steps left on the context, adds its own
    output, and returns a StepResult.  It signals an expected failure by
    raising StepExecutionError; retries only happen for steps that set
    ``retryable``.
    """

    name: str = "unnamed_step"
    description: str = ""
    retryable: bool = False
    max_retries: int = 3

    @abstractmethod
    async def execute(self, ctx: PipelineContext) -> StepResult:
        ...

    async def rollback(self, ctx: PipelineContext) -> None:
        """Undo partial work after this step failed.  No-op by default."""

    async def should_skip(self, ctx: PipelineContext) -> bool:
        return False

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _success(self, started_at: datetime, metadata: dict[str, Any] | None = None) -> StepResult:
        finished = self._now()
        return StepResult(
            step_name=self.name,
            status=StepStatus.COMPLETED,
            started_at=started_at,
            completed_at=finished,
            duration_ms=int((finished - started_at).total_seconds() * 1000),
            metadata=dict(metadata or {}),
        )
