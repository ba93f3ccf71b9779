"""
Command implementations for task-sync.
"""

from .sync import SyncCommand, build_runner
from .serve import ServeCommand
from .config import ConfigCommand

__all__ = [
    'SyncCommand',
    'ServeCommand',
    'ConfigCommand',
    'build_runner',
]
