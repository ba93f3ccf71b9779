"""Collaborator interface implemented by every task store."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple
import logging

from ..core.models import CreateRequest, TaskRecord, UpdateRequest

DEFAULT_NOTES_MAX_LENGTH = 8000


class TaskStore(ABC):
    """A task store seen through its coarse-grained read/write API.

    Implementations own field mapping, auth and rate limiting. They must
    return records with defaults already applied (see ``TaskRecord.from_dict``).
    """

    # Stores whose list endpoint omits long-form content set this and
    # implement fetch_notes().
    lazy_notes = False

    def __init__(self, name: str, notes_max_length: int = DEFAULT_NOTES_MAX_LENGTH,
                 logger: Optional[logging.Logger] = None):
        self.name = name
        self.notes_max_length = notes_max_length
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def fetch_all(self) -> List[TaskRecord]:
        """Every non-deleted task, completed ones included, fully materialized."""

    @abstractmethod
    def create(self, request: CreateRequest) -> TaskRecord:
        """Persist a new task and return it with its store-assigned id."""

    @abstractmethod
    def update(self, record_id: str, request: UpdateRequest) -> TaskRecord:
        """Apply only the fields set on ``request``."""

    def fetch_notes(self, record_id: str) -> str:
        """Fetch extended content for one record (lazy-notes stores only)."""
        raise NotImplementedError(f"{self.name} does not support per-record notes retrieval")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class PaginatedTaskStore(TaskStore):
    """Store whose listing is cursor-paginated.

    Pages are requested strictly one after another; a cursor is only valid
    once the previous page has been read.
    """

    def __init__(self, name: str, page_size: int = 100, **kwargs: Any):
        super().__init__(name, **kwargs)
        self.page_size = page_size

    @abstractmethod
    def fetch_page(self, cursor: Optional[str]) -> Tuple[List[TaskRecord], Optional[str]]:
        """Return one page of records and the cursor for the next page (None when done)."""

    def fetch_all(self) -> List[TaskRecord]:
        records: List[TaskRecord] = []
        cursor: Optional[str] = None
        pages = 0
        seen_cursors = set()
        while True:
            page, cursor = self.fetch_page(cursor)
            records.extend(page)
            pages += 1
            if not cursor:
                break
            if cursor in seen_cursors:
                raise RuntimeError(f"{self.name} returned a repeated page cursor: {cursor}")
            seen_cursors.add(cursor)
        self.logger.debug("Fetched %d tasks from %s in %d page(s)", len(records), self.name, pages)
        return records
