"""Title-based task matching between two snapshots."""

from typing import Dict, List, Optional, Tuple
import logging

from ..core.models import TaskRecord
from ..utils.text import normalize_title
from .index import TitleIndex


class TitleMatcher:
    """Matches a record against the other side's title index.

    Title is the only join key: no id bridging is attempted after a record
    has been mirrored, so a rename on one side reads as a new task.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def match(self, record: TaskRecord, index: TitleIndex) -> Optional[TaskRecord]:
        """Return the representative of ``record``'s title group in ``index``, if any."""
        if not record.is_addressable:
            return None
        group = index.get(normalize_title(record.title))
        if group is None:
            return None
        return group.representative()

    def is_representative(self, record: TaskRecord, own_index: TitleIndex) -> bool:
        """True when ``record`` is the one its own side would pick for its title."""
        representative = self.match(record, own_index)
        if representative is None:
            return False
        return representative is record or (bool(record.id) and representative.id == record.id)

    def find_pairs(self, records: List[TaskRecord], own_index: TitleIndex,
                   other_index: TitleIndex) -> List[Tuple[TaskRecord, TaskRecord]]:
        """Pair each side representative with its counterpart on the other side.

        Non-representative duplicates are skipped so that a title group is
        reconciled once per pass.
        """
        pairs: List[Tuple[TaskRecord, TaskRecord]] = []
        shadowed = 0
        for record in records:
            counterpart = self.match(record, other_index)
            if counterpart is None:
                continue
            if not self.is_representative(record, own_index):
                shadowed += 1
                continue
            pairs.append((record, counterpart))

        if shadowed:
            self.logger.debug("Skipped %d duplicate-titled records shadowed by their representative", shadowed)
        self.logger.info(f"Matched {len(pairs)} task pairs by title")
        return pairs

    def report_duplicates(self, index: TitleIndex, side_name: str) -> Dict[str, int]:
        """Log duplicate titles on one side as a data-quality warning."""
        duplicates = {group.key: group.size for group in index.duplicate_groups()}
        for key, size in duplicates.items():
            self.logger.warning(f"{side_name} has {size} tasks titled '{key}'; only one will be synced")
        return duplicates
