"""Tests for the CPU watchdog's restart decision."""

from dataclasses import dataclass

from app.core.watchdog import CpuWatchdog


@dataclass
class FakeRunner:
    is_busy: bool = False


class FakeClocks:
    """Wall and CPU clocks advanced by hand."""

    def __init__(self):
        self.wall = 0.0
        self.cpu = 0.0

    def advance(self, wall, cpu):
        self.wall += wall
        self.cpu += cpu


def make_watchdog(runner, clocks, terminations):
    return CpuWatchdog(
        runner,
        threshold=70.0,
        interval=5.0,
        terminate=lambda: terminations.append(True),
        clock=lambda: clocks.wall,
        cpu_clock=lambda: clocks.cpu,
    )


def test_sample_is_cpu_share_of_wall_time():
    clocks = FakeClocks()
    watchdog = make_watchdog(FakeRunner(), clocks, [])

    clocks.advance(wall=5.0, cpu=2.5)

    assert watchdog.sample() == 50.0


def test_idle_process_over_threshold_is_terminated():
    clocks, terminations = FakeClocks(), []
    watchdog = make_watchdog(FakeRunner(is_busy=False), clocks, terminations)

    clocks.advance(wall=5.0, cpu=4.5)

    assert watchdog.check() is True
    assert terminations == [True]


def test_busy_process_is_left_running():
    clocks, terminations = FakeClocks(), []
    watchdog = make_watchdog(FakeRunner(is_busy=True), clocks, terminations)

    clocks.advance(wall=5.0, cpu=4.5)

    assert watchdog.check() is False
    assert terminations == []


def test_below_threshold_does_nothing():
    clocks, terminations = FakeClocks(), []
    watchdog = make_watchdog(FakeRunner(), clocks, terminations)

    clocks.advance(wall=5.0, cpu=1.0)

    assert watchdog.check() is False
    assert terminations == []
