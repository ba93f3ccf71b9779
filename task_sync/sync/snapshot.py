"""Fetching a side's snapshot, including per-record notes hydration."""

from dataclasses import dataclass, field, replace
from typing import Callable, FrozenSet, List, Optional, Tuple
import logging
import time

from ..core.exceptions import FetchError, StoreError
from ..core.models import Side, TaskRecord
from ..stores.base import TaskStore
from ..utils.retry import RetryPolicy, retry_call


@dataclass(frozen=True)
class Snapshot:
    """One side's tasks as fetched at the start of a pass."""

    side: Side
    records: Tuple[TaskRecord, ...]
    # Ids whose notes could not be retrieved; their notes are not reconciled
    unhydrated: FrozenSet[str] = field(default_factory=frozenset)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)


class SnapshotLoader:
    """Fetches snapshots and fills in notes for lazy-notes stores."""

    def __init__(self, retry_policy: Optional[RetryPolicy] = None,
                 logger: Optional[logging.Logger] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep

    def load(self, side: Side, store: TaskStore) -> Snapshot:
        try:
            records = list(store.fetch_all())
        except Exception as exc:
            transient = exc.transient if isinstance(exc, StoreError) else False
            self.logger.error(f"Error fetching tasks from {store.name}: {exc}")
            raise FetchError(store.name, str(exc), transient=transient) from exc

        unhydrated: List[str] = []
        if store.lazy_notes:
            records, unhydrated = self._hydrate_notes(store, records)

        self.logger.info(f"Fetched {len(records)} tasks from {store.name}")
        return Snapshot(side=side, records=tuple(records), unhydrated=frozenset(unhydrated))

    def _hydrate_notes(self, store: TaskStore,
                       records: List[TaskRecord]) -> Tuple[List[TaskRecord], List[str]]:
        hydrated: List[TaskRecord] = []
        failed: List[str] = []
        for record in records:
            try:
                notes = retry_call(
                    store.fetch_notes,
                    record.id,
                    policy=self.retry_policy,
                    retry_on=(Exception,),
                    logger=self.logger,
                    sleep=self.sleep,
                )
            except Exception as exc:
                self.logger.warning(f"Could not load notes for '{record.title}' from {store.name}: {exc}")
                failed.append(record.id)
                hydrated.append(record)
                continue
            hydrated.append(replace(record, notes=notes or ""))
        return hydrated, failed
