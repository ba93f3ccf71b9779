"""
Text normalization and truncation utilities.
"""

import re
from typing import Optional

_WHITESPACE_RUN = re.compile(r'\s+')

DEFAULT_SUFFIX_BUDGET = 100


def normalize_title(title: Optional[str]) -> str:
    """
    Build the cross-store join key for a task title.

    Trims, case-folds and collapses internal whitespace runs to a single
    space, so "  Pay   Rent" and "pay rent" share a key.

    Args:
        title: Raw title as reported by a store

    Returns:
        Normalized key; empty string for missing or blank titles
    """
    if not title:
        return ""
    return _WHITESPACE_RUN.sub(' ', title.strip()).casefold()


def normalize_notes(notes: Optional[str]) -> str:
    """Notes are compared after trimming surrounding whitespace."""
    return (notes or "").strip()


def truncation_suffix(omitted: int) -> str:
    return f"\n\n[... {omitted} more characters in full content ...]"


def truncate_content(text: Optional[str], max_length: int,
                     suffix_budget: int = DEFAULT_SUFFIX_BUDGET) -> str:
    """
    Bound text to ``max_length`` characters.

    Text that already fits is returned unchanged. Otherwise ``suffix_budget``
    characters are reserved, the remainder is cut back to the last line
    boundary (a line with no break falls back to a raw character cut) and a
    suffix stating how many characters were omitted is appended.

    Args:
        text: Content to bound
        max_length: Maximum length of the result
        suffix_budget: Characters reserved for the omission suffix

    Returns:
        Text no longer than ``max_length``
    """
    text = text or ""
    if max_length <= 0:
        return ""
    if len(text) <= max_length:
        return text

    budget = max(max_length - suffix_budget, 0)
    head = text[:budget]
    line_end = head.rfind('\n')
    kept = head[:line_end] if line_end > 0 else head

    suffix = truncation_suffix(len(text) - len(kept))
    while kept and len(kept) + len(suffix) > max_length:
        kept = kept[:max(max_length - len(suffix), 0)]
        suffix = truncation_suffix(len(text) - len(kept))

    if len(kept) + len(suffix) > max_length:
        # Not even the suffix fits
        return text[:max_length]
    return kept + suffix
