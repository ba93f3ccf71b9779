"""
Core module for task-sync - contains domain models, configuration, and exceptions.
"""

from .models import (
    TaskRecord,
    CreateRequest,
    UpdateRequest,
    Operation,
    Side,
    CompletionPolicy,
    NotesPolicy,
    CreateDirection,
    PassState,
    PassResult,
    SyncStats
)

from .config import SyncConfig, StoreConfig, load_config, save_config

from .exceptions import (
    TaskSyncError,
    ConfigurationError,
    StoreError,
    FetchError,
    ApplyError,
    SyncError
)

__all__ = [
    # Models
    'TaskRecord',
    'CreateRequest',
    'UpdateRequest',
    'Operation',
    'Side',
    'CompletionPolicy',
    'NotesPolicy',
    'CreateDirection',
    'PassState',
    'PassResult',
    'SyncStats',
    # Configuration
    'SyncConfig',
    'StoreConfig',
    'load_config',
    'save_config',
    # Exceptions
    'TaskSyncError',
    'ConfigurationError',
    'StoreError',
    'FetchError',
    'ApplyError',
    'SyncError'
]
