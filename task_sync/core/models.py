"""
Domain models for task-sync.

This module contains the core data structures shared by the stores, the
reconciliation planner and the runner.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.date import EPOCH, format_date, format_timestamp, parse_date, parse_timestamp


class Side(Enum):
    """One of the two task stores being reconciled."""

    A = "a"
    B = "b"

    @property
    def other(self) -> Side:
        return Side.B if self is Side.A else Side.A


class CompletionPolicy(Enum):
    """Which side decides a completion-state conflict."""

    LATEST_WINS = "latest-wins"
    A_ALWAYS_WINS = "a-always-wins"
    B_ALWAYS_WINS = "b-always-wins"


class NotesPolicy(Enum):
    """Which side decides a notes conflict."""

    LATEST_WINS = "latest-wins"
    A_ALWAYS_WINS = "a-always-wins"
    B_ALWAYS_WINS = "b-always-wins"
    DISABLED = "disabled"


class CreateDirection(Enum):
    """Which directions missing records are created in."""

    BIDIRECTIONAL = "bidirectional"
    A_TO_B_ONLY = "a-to-b-only"
    B_TO_A_ONLY = "b-to-a-only"

    def allows(self, source: Side) -> bool:
        if self is CreateDirection.BIDIRECTIONAL:
            return True
        if self is CreateDirection.A_TO_B_ONLY:
            return source is Side.A
        return source is Side.B


class PassState(Enum):
    """Lifecycle of a single sync pass."""

    IDLE = "idle"
    FETCHING = "fetching"
    MATCHING = "matching"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


def _is_completed(data: Dict[str, Any]) -> bool:
    if "completed" in data and isinstance(data["completed"], bool):
        return data["completed"]
    status = str(data.get("status") or "").strip().lower()
    return status in ("completed", "done")


@dataclass(frozen=True)
class TaskRecord:
    """Normalized, store-agnostic representation of a task."""

    title: str
    id: str = ""
    completed: bool = False
    due: Optional[date] = None
    notes: str = ""
    last_modified: datetime = EPOCH

    @property
    def is_addressable(self) -> bool:
        """Records without a usable title take no part in matching or creation."""
        return bool(self.title and self.title.strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "due": format_date(self.due),
            "notes": self.notes,
            "last_modified": format_timestamp(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TaskRecord:
        """Build a record from a loosely-typed store payload, applying defaults."""
        last_modified = data.get("last_modified", data.get("lastModified", data.get("updated")))
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            completed=_is_completed(data),
            due=parse_date(data.get("due")),
            notes=str(data.get("notes") or ""),
            last_modified=parse_timestamp(last_modified),
        )


@dataclass(frozen=True)
class CreateRequest:
    """Fields handed to ``TaskStore.create``."""

    title: str
    completed: bool = False
    due: Optional[date] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": self.title, "completed": self.completed}
        if self.due is not None:
            payload["due"] = format_date(self.due)
        if self.notes:
            payload["notes"] = self.notes
        return payload


@dataclass(frozen=True)
class UpdateRequest:
    """A partial update; only fields that are not None are applied."""

    completed: Optional[bool] = None
    notes: Optional[str] = None
    due: Optional[date] = None
    title: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in (self.completed, self.notes, self.due, self.title))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.completed is not None:
            payload["completed"] = self.completed
        if self.notes is not None:
            payload["notes"] = self.notes
        if self.due is not None:
            payload["due"] = format_date(self.due)
        if self.title is not None:
            payload["title"] = self.title
        return payload


@dataclass
class Operation:
    """Outcome of one planned create/update call."""

    kind: str  # create | update-completion | update-notes
    target: Side
    title: str
    record_id: Optional[str] = None
    status: str = "applied"  # applied | failed | skipped
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "target": self.target.value,
            "title": self.title,
            "record_id": self.record_id,
            "status": self.status,
            "detail": self.detail,
        }


@dataclass
class SyncStats:
    """Process-wide counters; survive across passes until explicitly reset."""

    total_passes: int = 0
    last_pass_time: Optional[datetime] = None
    tasks_created: int = 0
    tasks_updated: int = 0
    errors: int = 0

    def reset(self) -> None:
        self.total_passes = 0
        self.last_pass_time = None
        self.tasks_created = 0
        self.tasks_updated = 0
        self.errors = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_pass_time"] = format_timestamp(self.last_pass_time)
        return data


@dataclass
class PassResult:
    """Summary of a single sync pass."""

    state: PassState = PassState.IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    created: int = 0
    updated: int = 0
    errors: int = 0
    skipped: int = 0
    operations: List[Operation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state is PassState.DONE

    @property
    def duration_ms(self) -> Optional[int]:
        if self.started_at is None or self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def record(self, operation: Operation) -> None:
        """Fold one operation outcome into the pass counters."""
        self.operations.append(operation)
        if operation.status == "applied":
            if operation.kind == "create":
                self.created += 1
            else:
                self.updated += 1
        elif operation.status == "failed":
            self.errors += 1
        else:
            self.skipped += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "success": self.success,
            "started_at": format_timestamp(self.started_at),
            "finished_at": format_timestamp(self.finished_at),
            "duration_ms": self.duration_ms,
            "created": self.created,
            "updated": self.updated,
            "errors": self.errors,
            "skipped": self.skipped,
            "operations": [op.to_dict() for op in self.operations],
            "error": self.error,
        }
