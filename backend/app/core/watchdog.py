"""
CpuWatchdog: restarts the server process when it burns CPU while idle.

Samples process CPU time against wall time every ``interval`` seconds.
Above ``threshold`` percent with no upload in flight, the process is
terminated so the supervisor in ``manage.py serve`` can start a fresh
one.  While uploads are running the spike is expected and only logged.
"""

from __future__ import annotations

import asyncio
import os
import time
from typing import Callable, Protocol

from app.core.logging import get_logger

logger = get_logger(__name__)


class BusyProbe(Protocol):
    @property
    def is_busy(self) -> bool: ...


def _exit_for_restart() -> None:
    os._exit(1)


class CpuWatchdog:
    def __init__(
        self,
        runner: BusyProbe,
        threshold: float = 70.0,
        interval: float = 5.0,
        terminate: Callable[[], None] = _exit_for_restart,
        clock: Callable[[], float] = time.monotonic,
        cpu_clock: Callable[[], float] = time.process_time,
    ) -> None:
        self.runner = runner
        self.threshold = threshold
        self.interval = interval
        self.terminate = terminate
        self._clock = clock
        self._cpu_clock = cpu_clock
        self._last_wall = clock()
        self._last_cpu = cpu_clock()
        self._task: asyncio.Task | None = None

    def sample(self) -> float:
        """CPU usage since the previous sample, as a percentage of one core."""
        wall, cpu = self._clock(), self._cpu_clock()
        elapsed = wall - self._last_wall
        used = cpu - self._last_cpu
        self._last_wall, self._last_cpu = wall, cpu
        if elapsed <= 0:
            return 0.0
        return used / elapsed * 100.0

    def check(self) -> bool:
        """Take one sample and act on it.  Returns True if termination was requested."""
        usage = self.sample()
        if usage <= self.threshold:
            return False

        if self.runner.is_busy:
            logger.warning("High CPU while uploads are running", cpu_percent=round(usage, 1))
            return False

        logger.error(
            "High CPU with no uploads in flight, restarting",
            cpu_percent=round(usage, 1),
            threshold=self.threshold,
        )
        self.terminate()
        return True

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="cpu-watchdog")
            logger.info("CPU watchdog started", threshold=self.threshold, interval=self.interval)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.check()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
