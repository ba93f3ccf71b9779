"""Title index: normalized title -> same-titled records on one side."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from ..core.models import TaskRecord
from ..utils.date import timestamp_ms
from ..utils.text import normalize_title


@dataclass
class TitleGroup:
    """Same-titled records on one side, split by completion state."""

    key: str
    open: List[TaskRecord] = field(default_factory=list)
    done: List[TaskRecord] = field(default_factory=list)

    def add(self, record: TaskRecord) -> None:
        (self.done if record.completed else self.open).append(record)

    @property
    def size(self) -> int:
        return len(self.open) + len(self.done)

    @property
    def has_duplicates(self) -> bool:
        return self.size > 1

    def representative(self) -> Optional[TaskRecord]:
        """First open record in snapshot order, else the most recently modified done one."""
        if self.open:
            return self.open[0]
        if self.done:
            # max() keeps the first of equal timestamps, so ties resolve in snapshot order
            return max(self.done, key=lambda record: timestamp_ms(record.last_modified))
        return None


class TitleIndex:
    """Lookup over one snapshot keyed by ``normalize_title``."""

    def __init__(self, groups: Dict[str, TitleGroup]):
        self._groups = groups

    @classmethod
    def build(cls, snapshot: Iterable[TaskRecord]) -> "TitleIndex":
        """Group a snapshot by title key; records with blank titles are skipped."""
        groups: Dict[str, TitleGroup] = {}
        for record in snapshot:
            if not record.is_addressable:
                continue
            key = normalize_title(record.title)
            group = groups.get(key)
            if group is None:
                group = groups[key] = TitleGroup(key)
            group.add(record)
        return cls(groups)

    def get(self, key: str) -> Optional[TitleGroup]:
        return self._groups.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def groups(self) -> List[TitleGroup]:
        return list(self._groups.values())

    def duplicate_groups(self) -> List[TitleGroup]:
        return [group for group in self._groups.values() if group.has_duplicates]
