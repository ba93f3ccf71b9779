"""Sync runner: drives passes end-to-end and owns the process-wide statistics."""

from datetime import datetime
from typing import Any, Callable, Dict, Optional
import logging
import threading
import time

from ..core.config import SyncConfig
from ..core.exceptions import SyncError
from ..core.models import PassResult, PassState, Side, SyncStats
from ..stores.base import TaskStore
from ..utils.date import format_timestamp, utc_now
from .planner import ReconciliationPlanner


class SyncRunner:
    """Runs one reconciliation pass at a time.

    Overlapping triggers (a manual run racing the scheduler) are rejected and
    dropped, not queued.
    """

    def __init__(
        self,
        store_a: TaskStore,
        store_b: TaskStore,
        config: Optional[SyncConfig] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or SyncConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.planner = ReconciliationPlanner(store_a, store_b, self.config, sleep=sleep)

        self.stats = SyncStats()
        self.is_running = False
        self.state = PassState.IDLE
        self.last_result: Optional[PassResult] = None
        self._flag_lock = threading.Lock()

    def run_once(self) -> PassResult:
        """
        Run a single pass.

        Returns:
            The pass result; state ``skipped`` if another pass was in progress

        Raises:
            SyncError: If the pass failed (e.g. a snapshot could not be fetched).
                The partial result is available as ``error.result``.
        """
        with self._flag_lock:
            if self.is_running:
                self.logger.warning("Sync already in progress, skipping")
                now = self.clock()
                return PassResult(state=PassState.SKIPPED, started_at=now, finished_at=now)
            self.is_running = True

        result = PassResult(started_at=self.clock())
        self.logger.info(
            "Starting sync pass (completion=%s, notes=%s, create=%s)",
            self.config.completion_policy.value,
            self.config.notes_policy.value,
            self.config.create_direction.value,
        )
        try:
            self.planner.execute(result, on_state=self._set_state)
        except Exception as exc:
            result.state = PassState.FAILED
            result.error = str(exc)
            result.finished_at = self.clock()
            self._record_failure(result)
            self.logger.error(f"Sync pass failed: {exc}")
            raise SyncError(f"Sync pass failed: {exc}", cause=exc, result=result) from exc
        else:
            result.state = PassState.DONE
            result.finished_at = self.clock()
            self._record_success(result)
            self.logger.info(
                "Sync pass completed in %sms: %d created, %d updated, %d errors, %d skipped",
                result.duration_ms,
                result.created,
                result.updated,
                result.errors,
                result.skipped,
            )
            return result
        finally:
            self.state = result.state
            self.last_result = result
            self.is_running = False

    def _set_state(self, state: PassState) -> None:
        self.state = state
        self.logger.debug(f"Sync pass state -> {state.value}")

    def _record_success(self, result: PassResult) -> None:
        self.stats.total_passes += 1
        self.stats.last_pass_time = result.started_at
        self.stats.tasks_created += result.created
        self.stats.tasks_updated += result.updated
        self.stats.errors += result.errors

    def _record_failure(self, result: PassResult) -> None:
        # Operations committed before the failure still count
        self.stats.tasks_created += result.created
        self.stats.tasks_updated += result.updated
        self.stats.errors += result.errors + 1

    def get_status(self) -> Dict[str, Any]:
        """Read-only view of the runner state and statistics."""
        last = self.last_result
        return {
            "is_running": self.is_running,
            "state": self.state.value,
            "last_pass_time": format_timestamp(self.stats.last_pass_time),
            "stats": self.stats.to_dict(),
            "policies": self.config.describe_policies(),
            "stores": {
                "a": self.planner.stores[Side.A].name,
                "b": self.planner.stores[Side.B].name,
            },
            "last_result": None if last is None else {
                key: value for key, value in last.to_dict().items() if key != "operations"
            },
        }

    def reset_stats(self) -> None:
        self.logger.info("Resetting sync statistics")
        self.stats.reset()
