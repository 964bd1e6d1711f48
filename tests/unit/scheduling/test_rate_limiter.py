"""
Unit tests for the rate-limited scheduler.

Tests admission spacing, FIFO ordering, failure isolation and
queue lifecycle.
"""
import asyncio
import time

import pytest

from grid_aggregator.exceptions import InvalidArgumentException
from grid_aggregator.scheduling import RateLimiter

# Slack for timer wake-ups and bookkeeping between admission and task start
EPSILON = 0.005


def recording_task(log, value, duration=0.0):
    """Build a task that records its start time and returns value."""
    async def task():
        log.append((value, time.monotonic()))
        if duration:
            await asyncio.sleep(duration)
        return value
    return task


class TestRateLimiterInit:
    """Test limiter construction."""

    def test_defaults(self):
        limiter = RateLimiter()

        assert limiter.interval == 1.0
        assert limiter.get_status() == {
            "queue_length": 0,
            "is_processing": False,
            "interval": 1.0,
            "admitted": 0,
        }

    def test_negative_interval_raises(self):
        with pytest.raises(InvalidArgumentException):
            RateLimiter(interval=-0.5)

    def test_zero_interval_allowed(self):
        assert RateLimiter(interval=0).interval == 0


class TestAdmissionSpacing:
    """Test the minimum gap between task starts."""

    @pytest.mark.asyncio
    async def test_first_task_admitted_immediately(self):
        limiter = RateLimiter(interval=10.0)

        result = await asyncio.wait_for(limiter.submit(recording_task([], "a")), timeout=1.0)

        assert result == "a"

    @pytest.mark.asyncio
    async def test_span_between_first_and_last_admission(self):
        """Test N tasks span at least (N - 1) x interval."""
        interval = 0.05
        limiter = RateLimiter(interval=interval)
        log = []

        await limiter.execute_all([recording_task(log, i) for i in range(5)])

        starts = [started for _, started in log]
        assert starts[-1] - starts[0] >= 4 * interval - EPSILON
        for previous, current in zip(starts, starts[1:]):
            assert current - previous >= interval - EPSILON

    @pytest.mark.asyncio
    async def test_slow_task_consumes_the_interval(self):
        """Test no extra wait when the previous task outlasted the interval."""
        limiter = RateLimiter(interval=0.02)
        log = []

        await limiter.execute_all([
            recording_task(log, "slow", duration=0.1),
            recording_task(log, "next"),
        ])

        gap = log[1][1] - log[0][1]
        assert 0.1 - EPSILON <= gap < 0.1 + 0.05

    @pytest.mark.asyncio
    async def test_spacing_holds_across_separate_drains(self):
        """Test the gap is kept when the queue empties and refills."""
        interval = 0.05
        limiter = RateLimiter(interval=interval)
        log = []

        await limiter.submit(recording_task(log, 1))
        await limiter.submit(recording_task(log, 2))

        assert log[1][1] - log[0][1] >= interval - EPSILON

    @pytest.mark.asyncio
    async def test_delay_uses_last_admission(self):
        now = [100.0]
        limiter = RateLimiter(interval=1.0, clock=lambda: now[0])

        assert limiter._calculate_delay() == 0.0

        await limiter.submit(recording_task([], "a"))

        now[0] = 100.3
        assert limiter._calculate_delay() == pytest.approx(0.7)
        now[0] = 101.5
        assert limiter._calculate_delay() == 0.0


class TestOrdering:
    """Test FIFO admission and single in-flight execution."""

    @pytest.mark.asyncio
    async def test_fifo_regardless_of_duration(self):
        limiter = RateLimiter(interval=0.0)
        completed = []

        def task(name, duration):
            async def run():
                await asyncio.sleep(duration)
                completed.append(name)
                return name
            return run

        results = await limiter.execute_all([
            task("long", 0.05),
            task("instant", 0.0),
            task("short", 0.01),
        ])

        assert results == ["long", "instant", "short"]
        assert completed == ["long", "instant", "short"]

    @pytest.mark.asyncio
    async def test_never_more_than_one_in_flight(self):
        limiter = RateLimiter(interval=0.0)
        running = 0
        peak = 0

        async def task():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        futures = [limiter.submit(task) for _ in range(5)]
        await asyncio.gather(*futures)

        assert peak == 1

    @pytest.mark.asyncio
    async def test_submission_during_drain_joins_active_loop(self):
        limiter = RateLimiter(interval=0.0)
        order = []
        release = asyncio.Event()

        async def first():
            order.append("first")
            await release.wait()
            return "first"

        async def second():
            order.append("second")
            return "second"

        first_future = limiter.submit(first)
        await asyncio.sleep(0)
        drain_task = limiter._drain_task

        second_future = limiter.submit(second)
        status = limiter.get_status()

        assert status["is_processing"] is True
        assert status["queue_length"] == 1
        assert limiter._drain_task is drain_task

        release.set()
        assert await first_future == "first"
        assert await second_future == "second"
        assert order == ["first", "second"]


class TestFailureIsolation:
    """Test that a failing task only affects its own caller."""

    @pytest.mark.asyncio
    async def test_error_delivered_to_its_caller_only(self):
        limiter = RateLimiter(interval=0.0)

        async def ok():
            return "ok"

        async def boom():
            raise RuntimeError("boom")

        futures = [limiter.submit(ok), limiter.submit(boom), limiter.submit(ok)]

        assert await futures[0] == "ok"
        with pytest.raises(RuntimeError, match="boom"):
            await futures[1]
        assert await futures[2] == "ok"
        assert limiter.get_status()["admitted"] == 3

    @pytest.mark.asyncio
    async def test_execute_all_return_exceptions(self):
        limiter = RateLimiter(interval=0.0)

        async def ok():
            return 1

        async def boom():
            raise ValueError("bad batch")

        results = await limiter.execute_all([ok, boom, ok], return_exceptions=True)

        assert results[0] == 1
        assert isinstance(results[1], ValueError)
        assert results[2] == 1

    @pytest.mark.asyncio
    async def test_execute_all_raises_and_cancels_remaining(self):
        limiter = RateLimiter(interval=0.05)
        log = []

        async def boom():
            raise ValueError("bad batch")

        with pytest.raises(ValueError):
            await limiter.execute_all([
                recording_task(log, "first"),
                boom,
                recording_task(log, "never"),
            ])

        await asyncio.sleep(0.1)
        assert [name for name, _ in log] == ["first"]
        assert limiter.get_status()["admitted"] == 2


class TestProgress:
    """Test the progress observer."""

    @pytest.mark.asyncio
    async def test_progress_called_after_each_task(self):
        limiter = RateLimiter(interval=0.0)
        calls = []

        results = await limiter.execute_all(
            [recording_task([], i) for i in range(3)],
            on_progress=lambda completed, total: calls.append((completed, total)),
        )

        assert results == [0, 1, 2]
        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_execute_all_empty(self):
        limiter = RateLimiter(interval=0.0)
        calls = []

        assert await limiter.execute_all([], on_progress=lambda c, t: calls.append(c)) == []
        assert calls == []


class TestShutdown:
    """Test stopping the limiter."""

    @pytest.mark.asyncio
    async def test_shutdown_cancels_queued_tasks(self):
        limiter = RateLimiter(interval=10.0)
        log = []

        first = limiter.submit(recording_task(log, "first"))
        second = limiter.submit(recording_task(log, "second"))

        assert await first == "first"
        await limiter.shutdown()

        assert second.cancelled()
        assert [name for name, _ in log] == ["first"]
        assert limiter.get_status()["is_processing"] is False

    @pytest.mark.asyncio
    async def test_shutdown_when_idle(self):
        limiter = RateLimiter(interval=0.0)

        await limiter.shutdown()

        assert limiter.get_status()["queue_length"] == 0

    @pytest.mark.asyncio
    async def test_cancelled_future_skipped(self):
        limiter = RateLimiter(interval=0.0)
        log = []
        release = asyncio.Event()

        async def blocker():
            await release.wait()

        limiter.submit(blocker)
        skipped = limiter.submit(recording_task(log, "skipped"))
        kept = limiter.submit(recording_task(log, "kept"))

        skipped.cancel()
        release.set()

        assert await kept == "kept"
        assert [name for name, _ in log] == ["kept"]
        assert limiter.get_status()["admitted"] == 2
