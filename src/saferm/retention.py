"""Retention window checks.

"Older than N days" uses an inclusive cutoff: an entry deleted exactly
``N * 86400`` seconds ago is expired.
"""

from __future__ import annotations

SECONDS_PER_DAY = 86400


def _check_window(window_days: float) -> None:
    if window_days < 0:
        raise ValueError(f"Retention window must not be negative: {window_days}")


def cutoff(now: float, window_days: float) -> float:
    """Get the timestamp at or before which entries are expired."""
    _check_window(window_days)
    return now - window_days * SECONDS_PER_DAY


def is_expired(deleted_at: float, now: float, window_days: float) -> bool:
    """Check if an entry is at least window_days old.

    Args:
        deleted_at: Deletion timestamp, seconds since epoch.
        now: Current timestamp.
        window_days: Retention window in days.

    Returns:
        True if the entry is beyond the retention window.

    """
    _check_window(window_days)
    return now - deleted_at >= window_days * SECONDS_PER_DAY


def within_window(deleted_at: float, now: float, window_days: float) -> bool:
    """Check if an entry was deleted within the last window_days days.

    A window of 0 disables filtering.
    """
    _check_window(window_days)
    if window_days == 0:
        return True
    return not is_expired(deleted_at, now, window_days)
