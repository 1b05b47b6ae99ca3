"""
Sequential runner for ingestion steps.

A run walks the step list in order.  A step that raises
StepExecutionError may be retried (exponential backoff) when it is
marked ``retryable``; any other exception fails it on the spot.  The
first failing step is rolled back and ends the run, and every step's
outcome is appended to ``ctx.step_results``.
"""

from __future__ import annotations

import asyncio
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from app.core.constants import PipelineStatus, StepStatus
from app.pipeline.context import PipelineContext, StepResult
from app.pipeline.errors import StepExecutionError
from app.pipeline.step import PipelineStep


@dataclass
class PipelineResult:
    """What a finished run reports back to the ingestion service."""

    execution_id: str
    status: str
    started_at: datetime
    completed_at: datetime
    total_duration_ms: int = 0
    steps_completed: int = 0
    total_steps: int = 0
    error: str | None = None
    context_summary: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == PipelineStatus.COMPLETED


def _failed(step: PipelineStep, error: str, started_at: datetime, **metadata: Any) -> StepResult:
    completed_at = datetime.now(timezone.utc)
    return StepResult(
        step_name=step.name,
        status=StepStatus.FAILED,
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=int((completed_at - started_at).total_seconds() * 1000),
        error=error,
        metadata=metadata,
    )


class PipelineEngine:
    """
    Runs steps against one PipelineContext.

        result = await PipelineEngine().run(ctx, ingestion_flow())

    ``step_timeout`` bounds a single attempt of a step; a timed-out
    attempt counts as a failure and is not retried.
    """

    def __init__(self, backoff_base: float = 2.0, step_timeout: float | None = None) -> None:
        self.backoff_base = backoff_base
        self.step_timeout = step_timeout
        self.logger = structlog.get_logger("pipeline.engine")

    async def run(self, ctx: PipelineContext, steps: list[PipelineStep]) -> PipelineResult:
        started_at = datetime.now(timezone.utc)
        clock_start = time.perf_counter()
        ctx.total_steps = len(steps)
        log = self.logger.bind(execution_id=ctx.execution_id, file_name=ctx.file_name)
        log.info("Pipeline started", total_steps=len(steps))

        done = 0
        error: str | None = None
        for index, step in enumerate(steps):
            step_log = log.bind(step_name=step.name, step_index=index + 1)

            if await self._skipped(step, ctx, step_log):
                done += 1
                continue

            step_log.debug("Step starting", description=step.description)
            outcome = await self._attempt(step, ctx, step_log)
            ctx.step_results.append(outcome)

            if outcome.status != StepStatus.COMPLETED:
                error = outcome.error
                ctx.add_error(f"Step '{step.name}' failed: {error}")
                step_log.warning("Step failed, stopping run", error=error)
                await self._rollback(step, ctx, step_log)
                break

            done += 1
            step_log.info("Step completed", duration_ms=outcome.duration_ms, metadata=outcome.metadata)

        status = PipelineStatus.FAILED if error is not None else PipelineStatus.COMPLETED
        duration_ms = int((time.perf_counter() - clock_start) * 1000)
        log.info("Pipeline finished", status=status, steps_completed=done, duration_ms=duration_ms)

        summary = ctx.to_summary_dict()
        summary["step_results"] = [r.to_dict() for r in ctx.step_results]
        return PipelineResult(
            execution_id=ctx.execution_id,
            status=status,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            total_duration_ms=duration_ms,
            steps_completed=done,
            total_steps=len(steps),
            error=error,
            context_summary=summary,
        )

    async def _skipped(self, step: PipelineStep, ctx: PipelineContext, log) -> bool:
        try:
            skip = await step.should_skip(ctx)
        except Exception as exc:
            log.warning("should_skip raised, running step anyway", error=str(exc))
            return False
        if skip:
            now = datetime.now(timezone.utc)
            ctx.step_results.append(StepResult(
                step_name=step.name, status=StepStatus.SKIPPED, started_at=now, completed_at=now,
            ))
            log.info("Step skipped")
        return skip

    async def _attempt(self, step: PipelineStep, ctx: PipelineContext, log) -> StepResult:
        attempts = step.max_retries if step.retryable else 1
        attempt = 0
        while True:
            attempt += 1
            started_at = datetime.now(timezone.utc)
            try:
                return await asyncio.wait_for(step.execute(ctx), timeout=self.step_timeout)
            except StepExecutionError as exc:
                if attempt >= attempts:
                    return _failed(step, str(exc), started_at, attempts=attempt, error_type=type(exc).__name__)
                delay = self.backoff_base ** attempt
                log.warning("Step attempt failed, retrying", attempt=attempt, of=attempts, delay=delay, error=str(exc))
                await asyncio.sleep(delay)
            except asyncio.TimeoutError:
                return _failed(step, f"Step timed out after {self.step_timeout}s", started_at, attempts=attempt)
            except Exception as exc:
                log.exception("Unexpected error in step", error=str(exc))
                return _failed(step, str(exc), started_at, traceback=traceback.format_exc())

    async def _rollback(self, step: PipelineStep, ctx: PipelineContext, log) -> None:
        try:
            await step.rollback(ctx)
        except Exception as exc:
            log.warning("Rollback failed", error=str(exc))
