"""
Utility functions for task-sync.
"""

from .date import EPOCH, parse_date, format_date, parse_timestamp, timestamp_ms, utc_now
from .text import normalize_title, normalize_notes, truncate_content
from .retry import RetryPolicy, retry_call, with_retry
from .io import read_json, write_json_atomic, locked_json
from .logging_setup import setup_logging

__all__ = [
    # Date utilities
    'EPOCH',
    'parse_date',
    'format_date',
    'parse_timestamp',
    'timestamp_ms',
    'utc_now',
    # Text utilities
    'normalize_title',
    'normalize_notes',
    'truncate_content',
    # Retry utilities
    'RetryPolicy',
    'retry_call',
    'with_retry',
    # I/O utilities
    'read_json',
    'write_json_atomic',
    'locked_json',
    # Logging
    'setup_logging',
]
