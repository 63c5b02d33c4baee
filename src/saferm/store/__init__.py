"""Holding-area backends."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..errors import ConfigError
from ..naming import NameConflictResolver
from ..paths import PathResolver
from .base import EntryResult, FileTrashStore, TrashEntry, TrashStore
from .directory import DirectoryTrashStore
from .freedesktop import FreedesktopTrashStore

if TYPE_CHECKING:
    from ..config import SafeRmConfig

BACKENDS: dict[str, type[FileTrashStore]] = {
    DirectoryTrashStore.backend: DirectoryTrashStore,
    FreedesktopTrashStore.backend: FreedesktopTrashStore,
}


def open_store(
    config: SafeRmConfig,
    paths: PathResolver | None = None,
    clock: Callable[[], float] = time.time,
) -> FileTrashStore:
    """Create the store selected by config.backend.

    The holding area is not created here; callers that write to it call
    ``ensure_layout`` first.

    Raises:
        ConfigError: If the backend is unknown.
        HoldingAreaUnavailableError: If the root exists but is not a directory.

    """
    try:
        store_cls = BACKENDS[config.backend]
    except KeyError:
        raise ConfigError(f"Unknown trash backend: {config.backend!r}") from None

    paths = paths or PathResolver(config)
    namer = NameConflictResolver(config.conflict_style, clock=clock)
    return store_cls(paths.resolve_holding_root(), namer=namer, clock=clock)


__all__ = [
    "BACKENDS",
    "DirectoryTrashStore",
    "EntryResult",
    "FileTrashStore",
    "FreedesktopTrashStore",
    "TrashEntry",
    "TrashStore",
    "open_store",
]
