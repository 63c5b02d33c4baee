"""Tests for retention window checks."""

from __future__ import annotations

import pytest

from saferm.retention import SECONDS_PER_DAY, cutoff, is_expired, within_window

NOW = 1_700_000_000.0


class TestIsExpired:
    """Tests for is_expired()."""

    def test_boundary_is_expired(self) -> None:
        """Test that an entry exactly at the cutoff counts as expired."""
        deleted_at = NOW - 30 * SECONDS_PER_DAY
        assert is_expired(deleted_at, NOW, 30)

    def test_one_second_newer_is_kept(self) -> None:
        deleted_at = NOW - 30 * SECONDS_PER_DAY + 1
        assert not is_expired(deleted_at, NOW, 30)

    def test_one_second_older_is_expired(self) -> None:
        deleted_at = NOW - 30 * SECONDS_PER_DAY - 1
        assert is_expired(deleted_at, NOW, 30)

    def test_zero_window_expires_everything(self) -> None:
        assert is_expired(NOW, NOW, 0)

    def test_negative_window_rejected(self) -> None:
        with pytest.raises(ValueError):
            is_expired(NOW, NOW, -1)


class TestWithinWindow:
    """Tests for within_window()."""

    def test_zero_means_no_filter(self) -> None:
        assert within_window(0.0, NOW, 0)

    def test_recent_entry_included(self) -> None:
        assert within_window(NOW - 2 * SECONDS_PER_DAY, NOW, 7)

    def test_boundary_excluded(self) -> None:
        assert not within_window(NOW - 7 * SECONDS_PER_DAY, NOW, 7)

    def test_complements_is_expired(self) -> None:
        for age in (0, 1, 6 * SECONDS_PER_DAY, 7 * SECONDS_PER_DAY, 8 * SECONDS_PER_DAY):
            assert within_window(NOW - age, NOW, 7) is not is_expired(NOW - age, NOW, 7)


def test_cutoff() -> None:
    assert cutoff(NOW, 1) == NOW - SECONDS_PER_DAY
