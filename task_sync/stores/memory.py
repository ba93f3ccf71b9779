"""In-memory task store."""

from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional
from uuid import uuid4
import threading

from ..core.exceptions import ApplyError
from ..core.models import CreateRequest, TaskRecord, UpdateRequest
from ..utils.date import utc_now
from .base import TaskStore


class InMemoryTaskStore(TaskStore):
    """Dict-backed store; every write bumps ``last_modified`` from ``clock``.

    Records keep insertion order so snapshots are stable. With
    ``lazy_notes=True`` listings omit notes and ``fetch_notes`` must be used,
    like a store whose long-form content lives behind a second endpoint.
    """

    def __init__(self, name: str = "memory", records: Optional[Iterable[TaskRecord]] = None,
                 clock: Optional[Callable[[], datetime]] = None, lazy_notes: bool = False,
                 **kwargs):
        super().__init__(name, **kwargs)
        self.clock = clock or utc_now
        self.lazy_notes = lazy_notes
        self._lock = threading.Lock()
        self._records: Dict[str, TaskRecord] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: TaskRecord) -> TaskRecord:
        """Insert a record as-is (no timestamp bump); assigns an id if missing."""
        if not record.id:
            record = replace(record, id=uuid4().hex)
        with self._lock:
            self._records[record.id] = record
        return record

    def get(self, record_id: str) -> Optional[TaskRecord]:
        with self._lock:
            return self._records.get(record_id)

    def all(self) -> List[TaskRecord]:
        """Current contents with notes, regardless of ``lazy_notes``."""
        with self._lock:
            return list(self._records.values())

    def fetch_all(self) -> List[TaskRecord]:
        with self._lock:
            records = list(self._records.values())
        if self.lazy_notes:
            return [replace(record, notes="") for record in records]
        return records

    def fetch_notes(self, record_id: str) -> str:
        record = self.get(record_id)
        if record is None:
            raise ApplyError(f"{self.name}: no task with id {record_id}")
        return record.notes

    def create(self, request: CreateRequest) -> TaskRecord:
        record = TaskRecord(
            id=uuid4().hex,
            title=request.title,
            completed=request.completed,
            due=request.due,
            notes=request.notes or "",
            last_modified=self.clock(),
        )
        with self._lock:
            self._records[record.id] = record
        return record

    def update(self, record_id: str, request: UpdateRequest) -> TaskRecord:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise ApplyError(f"{self.name}: no task with id {record_id}")
            changes = {key: value for key, value in request.to_dict().items() if key != "due"}
            if request.due is not None:
                changes["due"] = request.due
            updated = replace(current, last_modified=self.clock(), **changes)
            self._records[record_id] = updated
        return updated
