"""
Date and timestamp parsing at the store boundary.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

# Missing or unparseable modification times are treated as the oldest
# possible value.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DATE_PREFIX = re.compile(r'^\s*(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])')


def parse_date(value: Optional[Union[str, date, datetime]]) -> Optional[date]:
    """
    Parse a due date; any time component is dropped.

    Accepts ``date``/``datetime`` values and strings starting with
    ``YYYY-M-D`` (zero padding optional), such as ``2024-05-03`` or
    ``2024-05-03T09:00:00Z``. Anything else yields None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    match = _DATE_PREFIX.match(str(value))
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_timestamp(value: Optional[Union[str, datetime]]) -> datetime:
    """Parse a modification timestamp from an ISO string or datetime object.

    Naive values are assumed to be UTC. Anything missing or unparseable
    collapses to ``EPOCH``.

    Args:
        value: Either an ISO 8601 string or a datetime object

    Returns:
        Timezone-aware datetime
    """
    if not value:
        return EPOCH

    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
        except (AttributeError, ValueError):
            return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_ms(value: Optional[Union[str, datetime]]) -> int:
    """Milliseconds since the epoch for a modification timestamp."""
    delta = parse_timestamp(value) - EPOCH
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO 8601 in UTC, or None."""
    if value is None:
        return None
    return parse_timestamp(value).astimezone(timezone.utc).isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
