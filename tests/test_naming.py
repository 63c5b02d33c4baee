"""Tests for holding-area name conflict resolution."""

from __future__ import annotations

from datetime import datetime

import pytest

from saferm.naming import NameConflictResolver, split_name

from .conftest import START


class TestSplitName:
    """Tests for split_name()."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("a.txt", ("a", ".txt")),
            ("archive.tar.gz", ("archive.tar", ".gz")),
            ("Makefile", ("Makefile", "")),
            (".bashrc", (".bashrc", "")),
            ("trailing.", ("trailing.", "")),
        ],
    )
    def test_split(self, name: str, expected: tuple[str, str]) -> None:
        assert split_name(name) == expected


class TestCounterStyle:
    """Tests for counter suffixes."""

    @pytest.fixture
    def resolver(self) -> NameConflictResolver:
        return NameConflictResolver("counter")

    def test_free_name_unchanged(self, resolver: NameConflictResolver) -> None:
        assert resolver.reserve("note.txt", set()) == "note.txt"

    def test_first_conflict(self, resolver: NameConflictResolver) -> None:
        assert resolver.reserve("note.txt", {"note.txt"}) == "note-1.txt"

    def test_skips_taken_counters(self, resolver: NameConflictResolver) -> None:
        occupied = {"note.txt", "note-1.txt", "note-2.txt"}
        assert resolver.reserve("note.txt", occupied) == "note-3.txt"

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Makefile", "Makefile-1"),
            (".bashrc", ".bashrc-1"),
            ("dir", "dir-1"),
        ],
    )
    def test_no_extension_or_stem(self, resolver: NameConflictResolver, name: str, expected: str) -> None:
        assert resolver.reserve(name, {name}) == expected

    def test_deterministic(self, resolver: NameConflictResolver) -> None:
        occupied = frozenset({"a.txt", "a-1.txt"})
        assert resolver.reserve("a.txt", occupied) == resolver.reserve("a.txt", occupied)


class TestTimestampStyle:
    """Tests for timestamp suffixes."""

    @pytest.fixture
    def resolver(self) -> NameConflictResolver:
        return NameConflictResolver("timestamp", clock=lambda: START)

    def test_timestamp_suffix(self, resolver: NameConflictResolver) -> None:
        stamp = datetime.fromtimestamp(START).strftime("%Y%m%d_%H%M%S")
        assert resolver.reserve("note.txt", {"note.txt"}) == f"note_{stamp}.txt"

    def test_timestamp_taken_falls_back_to_counter(self, resolver: NameConflictResolver) -> None:
        stamp = datetime.fromtimestamp(START).strftime("%Y%m%d_%H%M%S")
        occupied = {"note.txt", f"note_{stamp}.txt"}
        assert resolver.reserve("note.txt", occupied) == f"note_{stamp}-1.txt"

    def test_free_name_unchanged(self, resolver: NameConflictResolver) -> None:
        assert resolver.reserve("note.txt", {"other.txt"}) == "note.txt"


def test_unknown_style_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown conflict style"):
        NameConflictResolver("uuid")
