"""Duplicate guard re-verifying absence of a title right before a create."""

from typing import Callable, Optional
import logging
import time

from ..stores.base import TaskStore
from ..utils.text import normalize_title

DEFAULT_DEBOUNCE_SECONDS = 1.0


class DuplicateGuard:
    """Re-fetches the target side before a create, twice, with a debounce between.

    The pass snapshot can be stale by the time a create is applied: another
    runner, a manual edit, or a slow-propagating earlier write may have
    produced the same title on the target in the meantime.
    """

    def __init__(self, debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.debounce_seconds = debounce_seconds
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def _title_present(self, store: TaskStore, key: str) -> bool:
        return any(
            record.is_addressable and normalize_title(record.title) == key
            for record in store.fetch_all()
        )

    def is_clear(self, store: TaskStore, title: str) -> bool:
        """
        True when ``title`` is still absent from ``store`` after both checks.

        Store errors propagate; the caller treats them as a failed create.
        """
        key = normalize_title(title)

        if self._title_present(store, key):
            self.logger.info(f"'{title}' already exists in {store.name}; skipping create")
            return False

        if self.debounce_seconds > 0:
            self.sleep(self.debounce_seconds)

        if self._title_present(store, key):
            self.logger.info(f"'{title}' appeared in {store.name} during debounce; skipping create")
            return False

        return True
