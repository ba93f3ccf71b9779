"""Interval scheduler invoking the runner on a background thread."""

from typing import Optional
import logging
import threading

from ..core.exceptions import SyncError
from ..core.models import PassResult
from .runner import SyncRunner


class IntervalScheduler:
    """Triggers ``runner.run_once()`` every ``interval_seconds``.

    A failed pass is logged and left for the next tick to supersede; there
    is no retry in between.
    """

    def __init__(self, runner: SyncRunner, interval_seconds: float,
                 initial_delay_seconds: float = 0.0,
                 logger: Optional[logging.Logger] = None):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.runner = runner
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.run_count = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> Optional[PassResult]:
        """Run one scheduled pass; never raises."""
        self.run_count += 1
        self.logger.info("Starting scheduled sync")
        try:
            result = self.runner.run_once()
        except SyncError as exc:
            self.logger.error(f"Scheduled sync failed: {exc}")
            return None
        except Exception:
            self.logger.exception("Unexpected error in scheduled sync")
            return None
        self.logger.info(f"Scheduled sync finished with state '{result.state.value}'")
        return result

    def _loop(self) -> None:
        if self._stop_event.wait(self.initial_delay_seconds):
            return
        while not self._stop_event.is_set():
            self.tick()
            if self._stop_event.wait(self.interval_seconds):
                break

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="task-sync-scheduler", daemon=True)
        self._thread.start()
        self.logger.info(
            "Scheduler started: every %.0fs (first run in %.0fs)",
            self.interval_seconds,
            self.initial_delay_seconds,
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.logger.info("Scheduler stopped")
