"""
task-sync: title-matched task reconciliation between two stores.
"""

__version__ = "0.1.0"

from .core import (
    SyncConfig,
    TaskRecord,
    PassResult,
    SyncStats,
    TaskSyncError,
    SyncError,
)
from .sync import SyncRunner, ReconciliationPlanner, IntervalScheduler

__all__ = [
    '__version__',
    'SyncConfig',
    'TaskRecord',
    'PassResult',
    'SyncStats',
    'TaskSyncError',
    'SyncError',
    'SyncRunner',
    'ReconciliationPlanner',
    'IntervalScheduler',
]
