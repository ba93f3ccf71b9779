"""Sync module for title-matched task reconciliation."""

from .index import TitleIndex, TitleGroup
from .matcher import TitleMatcher
from .resolver import RecencyPolicy, ConflictResolver
from .guard import DuplicateGuard
from .snapshot import Snapshot, SnapshotLoader
from .planner import ReconciliationPlanner
from .runner import SyncRunner
from .scheduler import IntervalScheduler

__all__ = [
    'TitleIndex',
    'TitleGroup',
    'TitleMatcher',
    'RecencyPolicy',
    'ConflictResolver',
    'DuplicateGuard',
    'Snapshot',
    'SnapshotLoader',
    'ReconciliationPlanner',
    'SyncRunner',
    'IntervalScheduler',
]
