"""Shared fixtures for saferm tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from saferm.config import SafeRmConfig
from saferm.dispatcher import OperationDispatcher

# 2023-11-14, well clear of DST transitions
START = 1_700_000_000.0
DAY = 86400


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, *, days: float = 0, seconds: float = 0) -> None:
        self.now += days * DAY + seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock frozen at START."""
    return FakeClock()


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Create a directory holding files to remove."""
    directory = tmp_path / "work"
    directory.mkdir()
    return directory


@pytest.fixture
def config(tmp_path: Path) -> SafeRmConfig:
    """Create a test configuration with a temp trash directory."""
    cfg = SafeRmConfig()
    cfg.trash_dir = tmp_path / "trash"
    cfg.log_file = None
    return cfg


@pytest.fixture
def dispatcher(config: SafeRmConfig, clock: FakeClock) -> OperationDispatcher:
    """Create a dispatcher over the temp trash directory."""
    return OperationDispatcher.from_config(config, clock=clock)
