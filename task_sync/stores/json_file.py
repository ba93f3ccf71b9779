"""Task store backed by a JSON file.

File layout::

    {"tasks": [{"id": "...", "title": "...", "completed": false,
                "due": "2024-05-01", "notes": "...",
                "last_modified": "2024-05-01T10:00:00+00:00"}]}
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime
from uuid import uuid4

from ..core.exceptions import ApplyError, StoreError
from ..core.models import CreateRequest, TaskRecord, UpdateRequest
from ..utils.date import format_timestamp, utc_now
from ..utils.io import locked_json, read_json
from .base import PaginatedTaskStore


def _tasks_of(document: Any, path: str) -> List[Dict[str, Any]]:
    if document is None:
        return []
    if isinstance(document, dict) and isinstance(document.get("tasks", []), list):
        return document.get("tasks", [])
    raise StoreError(f"{path} does not contain a 'tasks' list")


class JsonFileTaskStore(PaginatedTaskStore):
    """Paginated store over a JSON document, with locked atomic writes."""

    def __init__(self, path: str, name: Optional[str] = None, page_size: int = 100,
                 clock: Optional[Callable[[], datetime]] = None, **kwargs):
        super().__init__(name or path, page_size=page_size, **kwargs)
        self.path = path
        self.clock = clock or utc_now

    def _load_tasks(self) -> List[Dict[str, Any]]:
        try:
            document = read_json(self.path, default=None)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read {self.path}: {exc}", transient=isinstance(exc, TimeoutError)) from exc
        return _tasks_of(document, self.path)

    def fetch_page(self, cursor: Optional[str]) -> Tuple[List[TaskRecord], Optional[str]]:
        offset = int(cursor) if cursor else 0
        tasks = self._load_tasks()
        page = tasks[offset:offset + self.page_size]
        records = [TaskRecord.from_dict(entry) for entry in page if not entry.get("deleted")]
        next_offset = offset + self.page_size
        return records, (str(next_offset) if next_offset < len(tasks) else None)

    def create(self, request: CreateRequest) -> TaskRecord:
        entry = request.to_dict()
        entry["id"] = uuid4().hex
        entry.setdefault("notes", "")
        entry["last_modified"] = format_timestamp(self.clock())
        try:
            with locked_json(self.path, default={"tasks": []}) as holder:
                document = holder[0] if holder[0] is not None else {}
                if isinstance(document, dict):
                    document.setdefault("tasks", [])
                _tasks_of(document, self.path).append(entry)
                holder[0] = document
        except (OSError, ValueError) as exc:
            raise ApplyError(f"Cannot write {self.path}: {exc}") from exc
        return TaskRecord.from_dict(entry)

    def update(self, record_id: str, request: UpdateRequest) -> TaskRecord:
        try:
            with locked_json(self.path, default={"tasks": []}) as holder:
                tasks = _tasks_of(holder[0], self.path)
                for entry in tasks:
                    if entry.get("id") == record_id and not entry.get("deleted"):
                        entry.update(request.to_dict())
                        entry["last_modified"] = format_timestamp(self.clock())
                        return TaskRecord.from_dict(entry)
                raise ApplyError(f"{self.name}: no task with id {record_id}")
        except (OSError, ValueError) as exc:
            raise ApplyError(f"Cannot write {self.path}: {exc}") from exc
