"""
Tests for title normalization and notes truncation (task_sync/utils/text.py).
"""

import pytest

from task_sync.utils.text import (
    normalize_notes,
    normalize_title,
    truncate_content,
    truncation_suffix,
)


class TestNormalizeTitle:
    """Test suite for the cross-store title key."""

    @pytest.mark.parametrize("raw", ["Pay rent", "  pay rent  ", "PAY\tRENT", "pay \n  rent", "Pay   Rent"])
    def test_equivalent_titles_share_a_key(self, raw):
        assert normalize_title(raw) == "pay rent"

    def test_blank_titles_normalize_to_empty(self):
        assert normalize_title(None) == ""
        assert normalize_title("") == ""
        assert normalize_title("   \t ") == ""

    def test_punctuation_is_significant(self):
        assert normalize_title("Pay rent!") != normalize_title("Pay rent")

    def test_casefold_handles_non_ascii(self):
        assert normalize_title("STRASSE") == normalize_title("straße")

    def test_idempotent(self):
        key = normalize_title("  Call   Mom ")
        assert normalize_title(key) == key


def test_normalize_notes_trims():
    assert normalize_notes("  hello \n") == "hello"
    assert normalize_notes(None) == ""


class TestTruncateContent:
    """Test suite for truncate_content."""

    def test_short_text_is_returned_unchanged(self):
        text = "line one\nline two"
        assert truncate_content(text, 8000) == text

    def test_exact_length_is_unchanged(self):
        text = "x" * 8000
        assert truncate_content(text, 8000) == text

    def test_long_text_without_newlines(self):
        text = "a" * 8500
        result = truncate_content(text, 8000)

        assert len(result) <= 8000
        kept = result[:7900]
        assert kept == "a" * 7900
        assert result == kept + truncation_suffix(600)
        assert result.endswith("[... 600 more characters in full content ...]")

    def test_cuts_back_to_last_newline(self):
        text = ("b" * 50 + "\n") * 200  # 10200 chars
        result = truncate_content(text, 8000)

        body, _, _ = result.partition("\n\n[... ")
        assert len(result) <= 8000
        assert body.endswith("b" * 50)
        assert len(body) % 51 == 50
        omitted = len(text) - len(body)
        assert result == body + truncation_suffix(omitted)

    def test_suffix_reports_omitted_characters(self):
        text = "head\n" + "z" * 500
        result = truncate_content(text, 200, suffix_budget=100)
        assert result == "head" + truncation_suffix(len(text) - 4)

    @pytest.mark.parametrize("max_length", [60, 120, 500, 1000])
    def test_bound_holds_for_small_limits(self, max_length):
        text = "word " * 1000
        assert len(truncate_content(text, max_length)) <= max_length

    def test_limit_smaller_than_suffix_falls_back_to_hard_cut(self):
        text = "q" * 100
        assert truncate_content(text, 10) == "q" * 10

    def test_empty_and_none(self):
        assert truncate_content("", 10) == ""
        assert truncate_content(None, 10) == ""
        assert truncate_content("abc", 0) == ""
