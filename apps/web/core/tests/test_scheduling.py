"""Tests for cancellable timers."""

import pytest

from apps.web.core.scheduling import DelayedCall, PeriodicTask


class TestPeriodicTask:
    """Tests for PeriodicTask."""

    def test_interval_must_be_positive(self):
        async def noop():
            pass

        with pytest.raises(ValueError):
            PeriodicTask(noop, 0)

    @pytest.mark.asyncio
    async def test_runs_every_interval(self, clock):
        ticks = []

        async def tick():
            ticks.append(clock.now)

        task = PeriodicTask(tick, 5, sleep=clock.sleep)
        task.start()
        await clock.advance(16)

        assert ticks == [5, 10, 15]
        assert task.active
        task.cancel()

    @pytest.mark.asyncio
    async def test_restart_does_not_stack(self, clock):
        """Test that start() while running replaces the loop."""
        ticks = []

        async def tick():
            ticks.append(clock.now)

        task = PeriodicTask(tick, 5, sleep=clock.sleep)
        task.start()
        await clock.advance(3)
        task.start()
        await clock.advance(5)

        assert ticks == [8]
        task.cancel()

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, clock):
        async def tick():
            pass

        task = PeriodicTask(tick, 5, sleep=clock.sleep)
        task.cancel()
        task.start()
        task.cancel()
        task.cancel()
        await clock.advance(20)

        assert not task.active
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_the_loop(self, clock, caplog):
        calls = []

        async def flaky():
            calls.append(clock.now)
            raise RuntimeError("boom")

        task = PeriodicTask(flaky, 1, sleep=clock.sleep, name="flaky")
        task.start()
        await clock.advance(3)

        assert calls == [1, 2, 3]
        assert "flaky callback failed" in caplog.text
        task.cancel()

    @pytest.mark.asyncio
    async def test_slow_callback_keeps_cadence(self, clock):
        """Test that a callback shorter than the interval does not shift later ticks."""
        starts = []

        async def slow():
            starts.append(clock.now)
            await clock.sleep(4)

        task = PeriodicTask(slow, 6, sleep=clock.sleep)
        task.start()
        await clock.advance(25)

        assert starts == [6, 12, 18, 24]
        assert task.skipped == 0
        task.cancel()

    @pytest.mark.asyncio
    async def test_tick_skipped_while_callback_running(self, clock):
        """Test that ticks never overlap a callback still in progress."""
        starts = []

        async def slower():
            starts.append(clock.now)
            await clock.sleep(7)

        task = PeriodicTask(slower, 5, sleep=clock.sleep)
        task.start()
        await clock.advance(16)

        assert starts == [5, 15]
        assert task.skipped == 1
        task.cancel()

    @pytest.mark.asyncio
    async def test_cancel_abandons_running_callback(self, clock):
        finished = []

        async def slow():
            await clock.sleep(4)
            finished.append(clock.now)

        task = PeriodicTask(slow, 5, sleep=clock.sleep)
        task.start()
        await clock.advance(6)
        task.cancel()
        await clock.advance(10)

        assert finished == []
        assert clock.pending == 0


class TestDelayedCall:
    """Tests for DelayedCall."""

    @pytest.mark.asyncio
    async def test_fires_once(self, clock):
        calls = []
        call = DelayedCall(lambda: calls.append(clock.now), 3, sleep=clock.sleep)

        call.start()
        await clock.advance(10)

        assert calls == [3]
        assert not call.active

    @pytest.mark.asyncio
    async def test_cancel_before_deadline(self, clock):
        calls = []
        call = DelayedCall(lambda: calls.append(clock.now), 3, sleep=clock.sleep)

        call.start()
        await clock.advance(2)
        call.cancel()
        await clock.advance(5)

        assert calls == []

    @pytest.mark.asyncio
    async def test_restart_moves_deadline(self, clock):
        calls = []
        call = DelayedCall(lambda: calls.append(clock.now), 3, sleep=clock.sleep)

        call.start()
        await clock.advance(2)
        call.start()
        await clock.advance(2)
        assert calls == []

        await clock.advance(1)
        assert calls == [5]

    def test_start_without_loop(self):
        call = DelayedCall(lambda: None, 1)

        with pytest.raises(RuntimeError):
            call.start()
