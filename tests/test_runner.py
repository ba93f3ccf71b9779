"""
Tests for the pass runner and interval scheduler
(task_sync/sync/{runner,scheduler}.py).
"""

import threading

import pytest

from task_sync.core.exceptions import FetchError, StoreError, SyncError
from task_sync.core.models import PassState, Side
from task_sync.stores.memory import InMemoryTaskStore
from task_sync.sync.runner import SyncRunner
from task_sync.sync.scheduler import IntervalScheduler

from .conftest import make_config, task


class BrokenStore(InMemoryTaskStore):
    def fetch_all(self):
        raise StoreError("401 Unauthorized")


class BlockingStore(InMemoryTaskStore):
    """Store whose listing waits until released, to hold a pass open."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_all(self):
        self.entered.set()
        self.release.wait(5)
        return super().fetch_all()


class TestStats:
    """Test suite for SyncStats bookkeeping."""

    def test_successful_passes_accumulate(self, make_runner, clock):
        runner = make_runner(records_a=[task("One")], records_b=[task("Two")])

        runner.run_once()
        clock.advance(seconds=30)
        runner.run_once()

        stats = runner.stats
        assert stats.total_passes == 2
        assert stats.tasks_created == 2
        assert stats.tasks_updated == 0
        assert stats.errors == 0
        assert stats.last_pass_time == clock()

    def test_last_pass_time_is_pass_start(self, make_runner, clock):
        runner = make_runner()
        started = clock()

        runner.run_once()

        assert runner.stats.last_pass_time == started

    def test_reset(self, make_runner):
        runner = make_runner(records_a=[task("One")])
        runner.run_once()

        runner.reset_stats()

        assert runner.stats.to_dict() == {
            "total_passes": 0,
            "last_pass_time": None,
            "tasks_created": 0,
            "tasks_updated": 0,
            "errors": 0,
        }


class TestFetchFailure:
    """A side that cannot be listed aborts the pass."""

    def test_nothing_is_applied(self, clock):
        store_a = InMemoryTaskStore("A", clock=clock, records=[task("Only A")])
        store_b = BrokenStore("B", clock=clock)
        runner = SyncRunner(store_a, store_b, make_config(), clock=clock)

        with pytest.raises(SyncError) as excinfo:
            runner.run_once()

        assert isinstance(excinfo.value.cause, FetchError)
        assert "Failed to fetch tasks from B" in str(excinfo.value)
        assert excinfo.value.result.state is PassState.FAILED
        assert len(store_a.all()) == 1
        assert runner.state is PassState.FAILED
        assert runner.is_running is False

    def test_failure_counts_as_error_not_pass(self, clock):
        runner = SyncRunner(BrokenStore("A", clock=clock), InMemoryTaskStore("B", clock=clock),
                            make_config(), clock=clock)

        with pytest.raises(SyncError):
            runner.run_once()

        assert runner.stats.total_passes == 0
        assert runner.stats.last_pass_time is None
        assert runner.stats.errors == 1

    def test_side_a_error_reported_when_both_fail(self, clock):
        runner = SyncRunner(BrokenStore("A", clock=clock), BrokenStore("B", clock=clock),
                            make_config(), clock=clock)

        with pytest.raises(SyncError) as excinfo:
            runner.run_once()

        assert excinfo.value.cause.side == "A"

    def test_runner_recovers_on_next_pass(self, clock):
        store_b = BrokenStore("B", clock=clock)
        runner = SyncRunner(InMemoryTaskStore("A", clock=clock), store_b, make_config(), clock=clock)
        with pytest.raises(SyncError):
            runner.run_once()

        runner.planner.stores[Side.B] = InMemoryTaskStore("B", clock=clock)
        result = runner.run_once()

        assert result.state is PassState.DONE
        assert runner.stats.total_passes == 1


class TestSingleFlight:
    """Overlapping triggers are rejected, not queued."""

    def test_concurrent_trigger_is_skipped(self, clock):
        store_a = BlockingStore("A", clock=clock, records=[task("One")])
        runner = SyncRunner(store_a, InMemoryTaskStore("B", clock=clock), make_config(), clock=clock)
        outcome = {}

        worker = threading.Thread(target=lambda: outcome.setdefault("result", runner.run_once()))
        worker.start()
        assert store_a.entered.wait(5)

        skipped = runner.run_once()
        assert runner.is_running is True
        assert runner.get_status()["state"] == PassState.FETCHING.value

        store_a.release.set()
        worker.join(5)

        assert skipped.state is PassState.SKIPPED
        assert skipped.created == 0
        assert outcome["result"].state is PassState.DONE
        assert runner.stats.total_passes == 1
        assert runner.is_running is False

    def test_sequential_triggers_both_run(self, make_runner):
        runner = make_runner()
        assert runner.run_once().state is PassState.DONE
        assert runner.run_once().state is PassState.DONE
        assert runner.stats.total_passes == 2


class TestStatus:
    def test_status_shape(self, make_runner):
        runner = make_runner(records_a=[task("One")])
        status = runner.get_status()
        assert status["last_result"] is None
        assert status["state"] == "idle"

        runner.run_once()
        status = runner.get_status()

        assert status["is_running"] is False
        assert status["state"] == "done"
        assert status["stores"] == {"a": "Side A", "b": "Side B"}
        assert status["policies"]["completion"] == "latest-wins"
        assert status["stats"]["tasks_created"] == 1
        assert status["last_result"]["created"] == 1
        assert "operations" not in status["last_result"]


class TestIntervalScheduler:
    """Test suite for IntervalScheduler."""

    def test_tick_runs_a_pass(self, make_runner):
        runner = make_runner(records_a=[task("One")])
        scheduler = IntervalScheduler(runner, interval_seconds=60)

        result = scheduler.tick()

        assert result.state is PassState.DONE
        assert scheduler.run_count == 1

    def test_tick_swallows_pass_failure(self, clock, caplog):
        runner = SyncRunner(BrokenStore("A", clock=clock), InMemoryTaskStore("B", clock=clock),
                            make_config(), clock=clock)
        scheduler = IntervalScheduler(runner, interval_seconds=60)

        with caplog.at_level("ERROR"):
            assert scheduler.tick() is None

        assert "Scheduled sync failed" in caplog.text
        assert runner.stats.errors == 1

    def test_rejects_non_positive_interval(self, make_runner):
        with pytest.raises(ValueError):
            IntervalScheduler(make_runner(), interval_seconds=0)

    @pytest.mark.slow
    def test_start_and_stop(self, make_runner):
        runner = make_runner(records_a=[task("One")])
        scheduler = IntervalScheduler(runner, interval_seconds=30, initial_delay_seconds=0)

        scheduler.start()
        try:
            for _ in range(100):
                if runner.stats.total_passes:
                    break
                threading.Event().wait(0.02)
        finally:
            scheduler.stop()

        assert runner.stats.total_passes == 1
        assert not scheduler.running


class TestLogging:
    """Each component logs under its own module name."""

    def test_components_log_under_their_own_names(self, make_runner, caplog):
        runner = make_runner(records_a=[task("Dup"), task("dup")], records_b=[task("Other")])

        with caplog.at_level("INFO"):
            runner.run_once()

        names = {record.name for record in caplog.records}
        assert {"task_sync.sync.runner", "task_sync.sync.snapshot",
                "task_sync.sync.matcher", "task_sync.sync.planner"} <= names
