"""Holding-area location and target classification."""

from __future__ import annotations

import os
import stat
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import HoldingAreaUnavailableError

if TYPE_CHECKING:
    from .config import SafeRmConfig


class PathKind(Enum):
    """What a target path points at, without following symlinks."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    MISSING = "missing"


def classify(path: Path) -> PathKind:
    """Classify a path using lstat.

    Args:
        path: Path to classify.

    Returns:
        PathKind of the path. Dangling symlinks are SYMLINK, not MISSING.

    """
    try:
        mode = path.lstat().st_mode
    except FileNotFoundError:
        return PathKind.MISSING
    except NotADirectoryError:
        return PathKind.MISSING

    if stat.S_ISLNK(mode):
        return PathKind.SYMLINK
    if stat.S_ISDIR(mode):
        return PathKind.DIRECTORY
    return PathKind.FILE


def absolute(path: Path) -> Path:
    """Make a path absolute without resolving its final component.

    The parent is resolved so that symlinked directories collapse, but a
    symlink target itself is never followed.
    """
    path = Path(os.path.abspath(path))
    if path.parent == path:
        return path
    return path.parent.resolve() / path.name


class PathResolver:
    """Computes the holding-area root and vets removal targets."""

    def __init__(self, config: SafeRmConfig) -> None:
        """Initialize the resolver.

        Args:
            config: saferm configuration.

        """
        self.config = config

    @staticmethod
    def classify(path: Path) -> PathKind:
        """Classify a target path."""
        return classify(path)

    def holding_root(self) -> Path:
        """Get the holding-area root for the configured backend."""
        if self.config.backend == "freedesktop":
            data_home = os.environ.get("XDG_DATA_HOME")
            if data_home and os.path.isabs(data_home):
                return Path(data_home) / "Trash"
            return Path.home() / ".local/share/Trash"
        return absolute(self.config.trash_dir)

    def resolve_holding_root(self, *, create: bool = False) -> Path:
        """Resolve the holding-area root, optionally creating it.

        Args:
            create: Create the directory when it does not exist.

        Returns:
            Holding-area root.

        Raises:
            HoldingAreaUnavailableError: If the root is not a directory or
                cannot be created.

        """
        root = self.holding_root()

        if root.exists() and not root.is_dir():
            raise HoldingAreaUnavailableError(f"Holding area is not a directory: {root}")

        if create:
            try:
                root.mkdir(parents=True, exist_ok=True, mode=0o700)
            except OSError as e:
                raise HoldingAreaUnavailableError(f"Cannot create holding area {root}: {e}") from e

        return root

    def is_protected(self, path: Path) -> bool:
        """Check if a path must never be removed.

        The filesystem root, the holding area, anything inside it, and any
        directory containing it are protected. A symlinked holding area is
        checked both as configured and as resolved.

        Args:
            path: Path to check.

        Returns:
            True if the path is protected.

        """
        target = absolute(path)
        if target.parent == target:
            return True

        root = absolute(self.holding_root())
        for candidate in {root, root.resolve()}:
            if target == candidate or target in candidate.parents or candidate in target.parents:
                return True
        return False
