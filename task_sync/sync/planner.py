"""Reconciliation planner: one full pass over two snapshots."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Set, Tuple
import logging
import time

from ..core.config import SyncConfig
from ..core.models import (
    CreateRequest,
    NotesPolicy,
    Operation,
    PassResult,
    PassState,
    Side,
    TaskRecord,
    UpdateRequest,
)
from ..stores.base import TaskStore
from ..utils.retry import RetryPolicy
from ..utils.text import normalize_notes, normalize_title, truncate_content
from .guard import DuplicateGuard
from .index import TitleIndex
from .matcher import TitleMatcher
from .resolver import ConflictResolver, RecencyPolicy
from .snapshot import Snapshot, SnapshotLoader


class ReconciliationPlanner:
    """Computes and applies the create/update operations that close the gap
    between two stores.

    A pass is sequential and not transactional: each operation is applied and
    counted on its own, and a failed operation does not stop the rest.
    Re-running from fresh snapshots converges whatever a pass left behind.
    """

    def __init__(
        self,
        store_a: TaskStore,
        store_b: TaskStore,
        config: Optional[SyncConfig] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or SyncConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.stores: Dict[Side, TaskStore] = {Side.A: store_a, Side.B: store_b}

        self.matcher = TitleMatcher()
        self.resolver = ConflictResolver(
            completion_policy=self.config.completion_policy,
            notes_policy=self.config.notes_policy,
            recency=RecencyPolicy(self.config.skew_ms),
        )
        self.guard = DuplicateGuard(self.config.guard_debounce_seconds, sleep=sleep)
        self.loader = SnapshotLoader(
            RetryPolicy(
                max_attempts=self.config.retry_attempts,
                base_delay=self.config.retry_base_delay,
                multiplier=self.config.retry_multiplier,
            ),
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------
    def execute(self, result: PassResult,
                on_state: Optional[Callable[[PassState], None]] = None) -> PassResult:
        """Run fetch -> match -> apply, folding every outcome into ``result``.

        Raises:
            FetchError: If either snapshot cannot be fetched; nothing is applied.
        """
        def enter(state: PassState) -> None:
            result.state = state
            if on_state:
                on_state(state)

        enter(PassState.FETCHING)
        snapshots = self.fetch_snapshots()

        enter(PassState.MATCHING)
        indexes = {side: TitleIndex.build(snapshot) for side, snapshot in snapshots.items()}
        for side, index in indexes.items():
            self.matcher.report_duplicates(index, self.stores[side].name)
        pairs = self.matcher.find_pairs(list(snapshots[Side.A]), indexes[Side.A], indexes[Side.B])

        enter(PassState.APPLYING)
        for a, b in pairs:
            self._reconcile_completion(a, b, result)

        if self.config.notes_policy is not NotesPolicy.DISABLED:
            for a, b in pairs:
                self._reconcile_notes(a, b, snapshots, result)

        created_keys: Set[str] = set()
        primary = self.config.primary_side
        for source in (primary, primary.other):
            if self.config.create_direction.allows(source):
                self._create_missing(source, snapshots, indexes, created_keys, result)

        return result

    def fetch_snapshots(self) -> Dict[Side, Snapshot]:
        """Fetch both sides concurrently; either failure aborts the pass."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="task-sync-fetch") as pool:
            futures = {side: pool.submit(self.loader.load, side, store) for side, store in self.stores.items()}
            # Wait for both so no fetch outlives the pass
            outcomes = {side: future.exception() for side, future in futures.items()}

        for side in (Side.A, Side.B):
            if outcomes[side] is not None:
                raise outcomes[side]
        return {side: future.result() for side, future in futures.items()}

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def _reconcile_completion(self, a: TaskRecord, b: TaskRecord, result: PassResult) -> None:
        if a.completed == b.completed:
            return

        winner = self.resolver.completion_winner(a, b)
        if winner is None:
            self.logger.info(f"Completion differs for '{a.title}' but edits are within skew; leaving both sides")
            result.skipped += 1
            return

        source, target = (a, b) if winner is Side.A else (b, a)
        self._apply_update(
            "update-completion",
            winner.other,
            target,
            UpdateRequest(completed=source.completed),
            result,
        )

    def _notes_equivalent(self, a: TaskRecord, b: TaskRecord) -> bool:
        """Equal after trimming, or one side holds the other's truncated form."""
        notes_a, notes_b = normalize_notes(a.notes), normalize_notes(b.notes)
        if notes_a == notes_b:
            return True
        budget = self.config.truncation_suffix_budget
        max_a = self.stores[Side.A].notes_max_length
        max_b = self.stores[Side.B].notes_max_length
        return (
            normalize_notes(truncate_content(notes_a, max_b, budget)) == notes_b
            or normalize_notes(truncate_content(notes_b, max_a, budget)) == notes_a
        )

    def _reconcile_notes(self, a: TaskRecord, b: TaskRecord,
                         snapshots: Dict[Side, Snapshot], result: PassResult) -> None:
        if a.id in snapshots[Side.A].unhydrated or b.id in snapshots[Side.B].unhydrated:
            self.logger.debug(f"Notes for '{a.title}' not loaded on both sides; skipping notes sync")
            return
        if self._notes_equivalent(a, b):
            return

        winner = self.resolver.notes_winner(a, b)
        if winner is None:
            self.logger.info(f"Notes differ for '{a.title}' but edits are within skew; leaving both sides")
            result.skipped += 1
            return

        source, target = (a, b) if winner is Side.A else (b, a)
        content = self._outbound_notes(source.notes, winner.other)
        if not content:
            # Never clear the other side's notes
            self.logger.info(f"Notes for '{a.title}' are empty on {self.stores[winner].name}; not overwriting")
            result.skipped += 1
            return

        self._apply_update("update-notes", winner.other, target, UpdateRequest(notes=content), result)

    def _outbound_notes(self, notes: str, target: Side) -> str:
        content = truncate_content(
            normalize_notes(notes),
            self.stores[target].notes_max_length,
            self.config.truncation_suffix_budget,
        )
        return content if content.strip() else ""

    def _apply_update(self, kind: str, target_side: Side, target: TaskRecord,
                      request: UpdateRequest, result: PassResult) -> None:
        store = self.stores[target_side]
        operation = Operation(kind=kind, target=target_side, title=target.title, record_id=target.id)
        try:
            store.update(target.id, request)
            self.logger.info(f"Updated '{target.title}' in {store.name}: {request.to_dict()}")
        except Exception as exc:
            operation.status = "failed"
            operation.detail = str(exc)
            self.logger.error(f"Failed to update '{target.title}' in {store.name}: {exc}")
        result.record(operation)

    # ------------------------------------------------------------------
    # Creates
    # ------------------------------------------------------------------
    def _create_missing(self, source: Side, snapshots: Dict[Side, Snapshot],
                        indexes: Dict[Side, TitleIndex], created_keys: Set[str],
                        result: PassResult) -> None:
        target = source.other
        source_store, target_store = self.stores[source], self.stores[target]
        is_primary = source is self.config.primary_side
        open_only = not (is_primary and self.config.include_completed_on_create)
        guarded = self.config.is_symmetric or not is_primary

        candidates = self._creation_candidates(source, snapshots, indexes, created_keys, open_only)
        if not candidates:
            self.logger.info(f"No {source_store.name}-only tasks to create in {target_store.name}")
            return

        self.logger.info(f"Found {len(candidates)} {source_store.name}-only tasks to create in {target_store.name}")
        for key, record in candidates:
            created_keys.add(key)
            operation = Operation(kind="create", target=target, title=record.title)

            if guarded:
                try:
                    clear = self.guard.is_clear(target_store, record.title)
                except Exception as exc:
                    operation.status = "failed"
                    operation.detail = f"duplicate check failed: {exc}"
                    self.logger.error(f"Duplicate check for '{record.title}' in {target_store.name} failed: {exc}")
                    result.record(operation)
                    continue
                if not clear:
                    operation.status = "skipped"
                    operation.detail = "already present"
                    result.record(operation)
                    continue

            notes = "" if record.id in snapshots[source].unhydrated else self._outbound_notes(record.notes, target)
            request = CreateRequest(
                title=record.title,
                completed=record.completed,
                due=record.due,
                notes=notes or None,
            )
            try:
                created = target_store.create(request)
                operation.record_id = created.id
                self.logger.info(f"Created '{record.title}' in {target_store.name}")
            except Exception as exc:
                operation.status = "failed"
                operation.detail = str(exc)
                self.logger.error(f"Failed to create '{record.title}' in {target_store.name}: {exc}")
            result.record(operation)

    def _creation_candidates(self, source: Side, snapshots: Dict[Side, Snapshot],
                             indexes: Dict[Side, TitleIndex], created_keys: Set[str],
                             open_only: bool) -> List[Tuple[str, TaskRecord]]:
        target_index = indexes[source.other]
        own_index = indexes[source]
        candidates: List[Tuple[str, TaskRecord]] = []
        seen: Set[str] = set()

        for record in snapshots[source]:
            if not record.is_addressable:
                continue
            key = normalize_title(record.title)
            if key in target_index or key in created_keys or key in seen:
                continue
            if not self.matcher.is_representative(record, own_index):
                continue
            if open_only and record.completed:
                self.logger.debug(f"Not creating completed task '{record.title}' on the other side")
                continue
            seen.add(key)
            candidates.append((key, record))
        return candidates
