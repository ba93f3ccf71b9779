"""Conflict resolution for matched task pairs."""

from typing import Optional
import logging

from ..core.models import CompletionPolicy, NotesPolicy, Side, TaskRecord
from ..utils.date import timestamp_ms

DEFAULT_SKEW_MS = 2000


class RecencyPolicy:
    """Decides whether one record was modified definitively later than another.

    Differences within ``skew_ms`` count as simultaneous, so two independently
    clocked edits cannot ping-pong a value between the stores on later passes.
    """

    def __init__(self, skew_ms: int = DEFAULT_SKEW_MS):
        if skew_ms < 0:
            raise ValueError("skew_ms must be non-negative")
        self.skew_ms = skew_ms

    def is_newer(self, candidate: TaskRecord, reference: TaskRecord) -> bool:
        return timestamp_ms(candidate.last_modified) - timestamp_ms(reference.last_modified) > self.skew_ms

    def newer_side(self, a: TaskRecord, b: TaskRecord) -> Optional[Side]:
        """Side whose record is newer beyond the skew, or None for a tie."""
        if self.is_newer(a, b):
            return Side.A
        if self.is_newer(b, a):
            return Side.B
        return None


class ConflictResolver:
    """Resolves field-level conflicts according to the configured policies."""

    def __init__(self, completion_policy: CompletionPolicy = CompletionPolicy.LATEST_WINS,
                 notes_policy: NotesPolicy = NotesPolicy.LATEST_WINS,
                 recency: Optional[RecencyPolicy] = None,
                 logger: Optional[logging.Logger] = None):
        self.completion_policy = completion_policy
        self.notes_policy = notes_policy
        self.recency = recency or RecencyPolicy()
        self.logger = logger or logging.getLogger(__name__)

    def completion_winner(self, a: TaskRecord, b: TaskRecord) -> Optional[Side]:
        """
        Side whose completion state should be copied to the other.

        Returns None when the states agree or when latest-wins finds the
        edits too close together to order.
        """
        if a.completed == b.completed:
            return None
        if self.completion_policy is CompletionPolicy.A_ALWAYS_WINS:
            return Side.A
        if self.completion_policy is CompletionPolicy.B_ALWAYS_WINS:
            return Side.B

        winner = self.recency.newer_side(a, b)
        self.logger.debug(f"Completion conflict for '{a.title}': a={a.completed} b={b.completed} -> {winner}")
        return winner

    def notes_winner(self, a: TaskRecord, b: TaskRecord) -> Optional[Side]:
        """Side whose notes are authoritative for a pair known to differ."""
        if self.notes_policy is NotesPolicy.DISABLED:
            return None
        if self.notes_policy is NotesPolicy.A_ALWAYS_WINS:
            return Side.A
        if self.notes_policy is NotesPolicy.B_ALWAYS_WINS:
            return Side.B

        winner = self.recency.newer_side(a, b)
        self.logger.debug(f"Notes conflict for '{a.title}' -> {winner}")
        return winner
