"""
Tests for the task scheduling facility: virtual clock ordering, repeating cadence,
cancellation, fault isolation, and the asyncio-backed scheduler.
"""
from __future__ import annotations

import asyncio
import logging

import pytest

from season_sim.services.timers import AsyncioTaskScheduler, ManualTaskScheduler, TaskHandle


class TestTaskHandle:
    def test_cancel_once(self):
        handle = TaskHandle("x")
        assert handle.active
        assert handle.cancel() is True
        assert handle.cancel() is False
        assert handle.cancelled
        assert not handle.active


class TestManualScheduler:
    def test_one_shots_run_in_due_order(self):
        s = ManualTaskScheduler()
        calls = []
        s.call_later(2.0, lambda: calls.append("b"))
        s.call_later(1.0, lambda: calls.append("a"))
        s.call_later(2.0, lambda: calls.append("c"))
        s.advance(1.5)
        assert calls == ["a"]
        s.advance(1.0)
        assert calls == ["a", "b", "c"]
        assert s.now == pytest.approx(2.5)

    def test_repeating_fixed_rate(self):
        s = ManualTaskScheduler()
        times = []
        s.call_every(0.5, lambda: times.append(s.now))
        s.advance(2.0)
        assert times == [0.0, 0.5, 1.0, 1.5, 2.0]

    def test_initial_delay(self):
        s = ManualTaskScheduler()
        times = []
        s.call_every(1.0, lambda: times.append(s.now), initial_delay=3.0)
        s.advance(5.0)
        assert times == [3.0, 4.0, 5.0]

    def test_cancel_from_inside_stops_repeats(self):
        s = ManualTaskScheduler()
        count = []
        handle = None

        def tick():
            count.append(1)
            if len(count) == 3:
                handle.cancel()

        handle = s.call_every(1.0, tick)
        s.advance(10.0)
        assert len(count) == 3
        assert s.pending == 0

    def test_cancelled_one_shot_never_runs(self):
        s = ManualTaskScheduler()
        calls = []
        h = s.call_later(1.0, lambda: calls.append(1))
        assert h.cancel()
        s.advance(5.0)
        assert calls == []
        assert s.next_due() is None

    def test_tasks_scheduled_from_tasks(self):
        s = ManualTaskScheduler()
        calls = []
        s.call_later(1.0, lambda: s.call_later(1.0, lambda: calls.append(s.now)))
        s.advance(3.0)
        assert calls == [2.0]

    def test_failing_task_logged_and_repeat_continues(self, caplog):
        s = ManualTaskScheduler()
        runs = []

        def flaky():
            runs.append(1)
            if len(runs) == 2:
                raise RuntimeError("boom")

        s.call_every(1.0, flaky, name="flaky")
        with caplog.at_level(logging.ERROR, logger="season_sim.timers"):
            s.advance(4.0)
        assert len(runs) == 5
        assert any("flaky" in r.getMessage() for r in caplog.records)

    def test_run_until(self):
        s = ManualTaskScheduler()
        counter = []
        s.call_every(1.0, lambda: counter.append(1))
        assert s.run_until(lambda: len(counter) >= 4)
        assert s.now == 3.0
        assert s.run_until(lambda: len(counter) >= 100, max_seconds=5) is False

    def test_run_until_nothing_pending(self):
        assert ManualTaskScheduler().run_until(lambda: False) is False

    def test_shutdown_cancels_and_refuses(self):
        s = ManualTaskScheduler()
        h = s.call_every(1.0, lambda: None)
        s.shutdown()
        assert h.cancelled
        with pytest.raises(RuntimeError):
            s.call_later(1.0, lambda: None)

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ManualTaskScheduler().call_every(0, lambda: None)


class TestAsyncioScheduler:
    def test_call_later_and_every(self):
        async def scenario():
            s = AsyncioTaskScheduler()
            fired = asyncio.Event()
            ticks = []
            s.call_later(0.01, fired.set)
            handle = s.call_every(0.01, lambda: ticks.append(1))
            await asyncio.wait_for(fired.wait(), timeout=2)
            while len(ticks) < 3:
                await asyncio.sleep(0.01)
            assert handle.cancel()
            seen = len(ticks)
            await asyncio.sleep(0.05)
            s.shutdown()
            return seen, len(ticks)

        seen, after = asyncio.run(scenario())
        assert seen >= 3
        assert after == seen

    def test_cancelled_one_shot_does_not_run(self):
        async def scenario():
            s = AsyncioTaskScheduler()
            calls = []
            h = s.call_later(0.02, lambda: calls.append(1))
            h.cancel()
            await asyncio.sleep(0.05)
            s.shutdown()
            return calls

        assert asyncio.run(scenario()) == []

    def test_failure_does_not_stop_repeating_task(self):
        async def scenario():
            s = AsyncioTaskScheduler()
            runs = []

            def flaky():
                runs.append(1)
                if len(runs) == 1:
                    raise RuntimeError("first tick fails")

            s.call_every(0.01, flaky)
            while len(runs) < 3:
                await asyncio.sleep(0.01)
            s.shutdown()
            return len(runs)

        assert asyncio.run(scenario()) >= 3

    def test_shutdown_refuses_new_tasks(self):
        async def scenario():
            s = AsyncioTaskScheduler()
            s.shutdown()
            with pytest.raises(RuntimeError):
                s.call_later(0.1, lambda: None)

        asyncio.run(scenario())
