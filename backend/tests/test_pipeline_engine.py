"""Tests for PipelineEngine: ordering, failure handling, retries and skips."""

import asyncio

from app.core.constants import PipelineStatus, StepStatus
from app.pipeline.context import PipelineContext, StepResult
from app.pipeline.engine import PipelineEngine
from app.pipeline.errors import StepExecutionError
from app.pipeline.step import PipelineStep


class RecordingStep(PipelineStep):
    def __init__(self, name, calls, fail_times=0, retryable=False, skip=False):
        self.name = name
        self.description = f"step {name}"
        self.calls = calls
        self.fail_times = fail_times
        self.retryable = retryable
        self.max_retries = 3
        self.skip = skip
        self.rolled_back = False

    async def should_skip(self, ctx):
        return self.skip

    async def execute(self, ctx) -> StepResult:
        started_at = self._now()
        self.calls.append(self.name)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise StepExecutionError(f"{self.name} broke", step_name=self.name)
        return self._success(started_at)

    async def rollback(self, ctx):
        self.rolled_back = True


class CrashingStep(PipelineStep):
    name = "crash"

    async def execute(self, ctx):
        raise RuntimeError("boom")


def make_ctx() -> PipelineContext:
    return PipelineContext(file_path="/tmp/x.csv", file_name="x.csv", session_factory=None)


async def test_steps_run_in_order():
    calls = []
    steps = [RecordingStep("a", calls), RecordingStep("b", calls), RecordingStep("c", calls)]

    result = await PipelineEngine().run(make_ctx(), steps)

    assert calls == ["a", "b", "c"]
    assert result.status == PipelineStatus.COMPLETED
    assert result.steps_completed == 3
    assert result.succeeded
    assert result.error is None


async def test_failure_stops_the_pipeline_and_rolls_back():
    calls = []
    failing = RecordingStep("b", calls, fail_times=1)
    steps = [RecordingStep("a", calls), failing, RecordingStep("c", calls)]
    ctx = make_ctx()

    result = await PipelineEngine().run(ctx, steps)

    assert calls == ["a", "b"]
    assert result.status == PipelineStatus.FAILED
    assert result.error == "b broke"
    assert failing.rolled_back
    assert ctx.errors == ["Step 'b' failed: b broke"]


async def test_retryable_step_is_retried():
    calls = []
    flaky = RecordingStep("flaky", calls, fail_times=2, retryable=True)

    result = await PipelineEngine(backoff_base=0).run(make_ctx(), [flaky])

    assert calls == ["flaky", "flaky", "flaky"]
    assert result.status == PipelineStatus.COMPLETED


async def test_unexpected_exception_fails_without_retry():
    result = await PipelineEngine().run(make_ctx(), [CrashingStep()])

    assert result.status == PipelineStatus.FAILED
    assert result.error == "boom"


async def test_skipped_step_counts_as_done():
    calls = []
    ctx = make_ctx()

    result = await PipelineEngine().run(ctx, [RecordingStep("a", calls, skip=True)])

    assert calls == []
    assert result.status == PipelineStatus.COMPLETED
    assert ctx.step_results[0].status == StepStatus.SKIPPED


class SlowStep(PipelineStep):
    name = "slow"

    async def execute(self, ctx):
        await asyncio.sleep(5)
        return self._success(self._now())


async def test_step_timeout_fails_the_run():
    ctx = make_ctx()

    result = await PipelineEngine(step_timeout=0.01).run(ctx, [SlowStep()])

    assert result.status == PipelineStatus.FAILED
    assert "timed out" in result.error
    assert ctx.step_results[0].status == StepStatus.FAILED
