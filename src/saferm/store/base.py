"""Trash entry types and the shared file-backed store implementation."""

from __future__ import annotations

import errno
import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import (
    HoldingAreaUnavailableError,
    MoveFailedError,
    NameConflictError,
    NotFoundError,
    PartialMoveError,
)
from ..fsops import delete_path, move_path
from ..naming import NameConflictResolver
from ..paths import PathKind, absolute, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrashEntry:
    """One item held in the trash."""

    name: str
    original_location: Path
    original_name: str
    deleted_at: float
    kind: str = PathKind.FILE.value

    @property
    def original_path(self) -> Path:
        """Get the path the item is restored to."""
        return self.original_location / self.original_name

    @property
    def deleted_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.deleted_at)


@dataclass
class EntryResult:
    """Result of one item in a batch operation."""

    target: str
    success: bool
    action: str  # "trashed", "deleted", "removed", "restored", "purged", "skipped", "error"
    entry: TrashEntry | None = None
    destination: Path | None = None
    error: str | None = None


@runtime_checkable
class TrashStore(Protocol):
    """Interface shared by holding-area backends."""

    root: Path

    def ensure_layout(self) -> None:
        """Create the backend's directories."""
        ...

    def occupied_names(self) -> set[str]:
        """Get every name currently taken in the holding area."""
        ...

    def insert(self, path: Path, resolved_name: str) -> TrashEntry:
        """Move a path into the holding area under resolved_name."""
        ...

    def content_path(self, entry: TrashEntry) -> Path:
        """Get where an entry's content is kept."""
        ...

    def enumerate(self) -> Iterator[TrashEntry]:
        """Iterate over the current holding-area entries."""
        ...

    def restore(
        self, entries: Iterable[TrashEntry], *, rename_on_conflict: bool = False
    ) -> list[EntryResult]:
        """Move entries back to their original locations."""
        ...

    def purge(self, entries: Iterable[TrashEntry]) -> list[EntryResult]:
        """Permanently delete entries."""
        ...


class FileTrashStore:
    """Holding area laid out as ``files/<name>`` plus ``info/<name><suffix>``.

    Subclasses define the metadata record format. Nothing is cached: every
    query re-reads the directory.
    """

    backend: str = ""
    metadata_suffix: str = ""

    def __init__(
        self,
        root: Path,
        *,
        namer: NameConflictResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            root: Holding-area root.
            namer: Resolver used to rename on restore conflicts.
            clock: Source of deletion timestamps.

        """
        self.root = root
        self.files_dir = root / "files"
        self.info_dir = root / "info"
        self.namer = namer or NameConflictResolver(clock=clock)
        self.clock = clock

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.root)!r})"

    def _format_metadata(self, entry: TrashEntry) -> str:
        raise NotImplementedError

    def _parse_metadata(self, name: str, text: str) -> TrashEntry:
        """Parse a metadata record; raises ValueError when malformed."""
        raise NotImplementedError

    def _timestamp(self) -> float:
        return float(self.clock())

    def metadata_path(self, name: str) -> Path:
        return self.info_dir / f"{name}{self.metadata_suffix}"

    def content_path(self, entry: TrashEntry) -> Path:
        return self.files_dir / entry.name

    def ensure_layout(self) -> None:
        """Create root, files and info directories.

        Raises:
            HoldingAreaUnavailableError: If a directory cannot be created.

        """
        try:
            for directory in (self.root, self.files_dir, self.info_dir):
                directory.mkdir(parents=True, exist_ok=True, mode=0o700)
        except OSError as e:
            raise HoldingAreaUnavailableError(f"Cannot create holding area {self.root}: {e}") from e

    def occupied_names(self) -> set[str]:
        """Get names present as content or as metadata, orphans included.

        Raises:
            HoldingAreaUnavailableError: If the holding area cannot be read.

        """
        names: set[str] = set()
        suffix = self.metadata_suffix

        for directory in (self.files_dir, self.info_dir):
            try:
                children = [child.name for child in directory.iterdir()]
            except FileNotFoundError:
                continue
            except OSError as e:
                raise HoldingAreaUnavailableError(
                    f"Cannot read holding area {directory}: {e}"
                ) from e

            if directory is self.files_dir:
                names.update(children)
            else:
                names.update(child[: -len(suffix)] for child in children if child.endswith(suffix))

        return names

    def insert(self, path: Path, resolved_name: str) -> TrashEntry:
        """Move a path into the holding area.

        The metadata record is created exclusively before the move, so a
        name can never be claimed twice. On failure nothing is left behind
        and the source stays where it was. The one exception is a directory
        copied across filesystems whose source could only be partly deleted:
        the entry is kept so the complete copy stays recoverable.

        Args:
            path: File, directory or symlink to trash.
            resolved_name: Free name from NameConflictResolver.

        Returns:
            The new entry.

        Raises:
            NotFoundError: If path does not exist.
            NameConflictError: If resolved_name is taken.
            MoveFailedError: If the item could not be moved.
            PartialMoveError: If a directory was copied in but its source
                could only be partly removed.

        """
        kind = classify(path)
        if kind is PathKind.MISSING:
            raise NotFoundError(errno.ENOENT, "No such file or directory", str(path))

        source = absolute(path)
        destination = self.files_dir / resolved_name
        metadata_path = self.metadata_path(resolved_name)

        if classify(destination) is not PathKind.MISSING:
            raise NameConflictError(errno.EEXIST, "Name already in holding area", resolved_name)

        entry = TrashEntry(
            name=resolved_name,
            original_location=source.parent,
            original_name=source.name,
            deleted_at=self._timestamp(),
            kind=kind.value,
        )

        try:
            with metadata_path.open("x", encoding="utf-8") as f:
                f.write(self._format_metadata(entry))
        except FileExistsError as e:
            raise NameConflictError(
                errno.EEXIST, "Name already in holding area", resolved_name
            ) from e
        except OSError as e:
            raise MoveFailedError(f"Cannot record {source} in holding area: {e}") from e

        try:
            move_path(source, destination)
        except PartialMoveError as e:
            logger.warning(
                "Partly removed %s; full copy kept in trash as %s", source, resolved_name
            )
            raise PartialMoveError(
                e.errno,
                f"Copied into holding area as {resolved_name} but not fully removed: {e.strerror}",
            ) from e
        except OSError as e:
            metadata_path.unlink(missing_ok=True)
            raise MoveFailedError(
                f"Cannot move {source} into holding area: {e.strerror or e}"
            ) from e

        logger.info("Moved to trash: %s -> %s", source, resolved_name)
        return entry

    def enumerate(self) -> Iterator[TrashEntry]:
        """Iterate over current entries, sorted by name.

        Entries whose metadata is unreadable or whose content is gone are
        skipped with a warning.

        Raises:
            HoldingAreaUnavailableError: If the metadata directory cannot be read.

        """
        suffix = self.metadata_suffix
        try:
            records = sorted(
                child.name for child in self.info_dir.iterdir() if child.name.endswith(suffix)
            )
        except FileNotFoundError:
            return
        except OSError as e:
            raise HoldingAreaUnavailableError(f"Cannot read holding area {self.root}: {e}") from e

        for record in records:
            name = record[: -len(suffix)]
            if classify(self.files_dir / name) is PathKind.MISSING:
                logger.warning("Skipping %s: metadata without content", name)
                continue
            try:
                text = (self.info_dir / record).read_text(encoding="utf-8")
                entry = self._parse_metadata(name, text)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.warning("Skipping %s: unreadable metadata (%s)", name, e)
                continue
            yield entry

    def _snapshot(self) -> dict[str, TrashEntry]:
        return {entry.name: entry for entry in self.enumerate()}

    def restore(
        self, entries: Iterable[TrashEntry], *, rename_on_conflict: bool = False
    ) -> list[EntryResult]:
        """Move entries back to their original paths.

        An existing destination fails the item and keeps the trashed copy,
        unless rename_on_conflict is set, in which case the item is restored
        next to it under a free name.

        Args:
            entries: Entries to restore.
            rename_on_conflict: Pick a new name instead of failing.

        Returns:
            One result per entry.

        """
        live = self._snapshot()
        return [self._restore_one(entry, live, rename_on_conflict) for entry in entries]

    def _restore_one(
        self, entry: TrashEntry, live: dict[str, TrashEntry], rename_on_conflict: bool
    ) -> EntryResult:
        if live.get(entry.name) != entry:
            return EntryResult(
                target=entry.name,
                success=False,
                action="skipped",
                entry=entry,
                error="No such entry in holding area",
            )

        destination = entry.original_path
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if classify(destination) is not PathKind.MISSING:
                if not rename_on_conflict:
                    return EntryResult(
                        target=entry.name,
                        success=False,
                        action="skipped",
                        entry=entry,
                        destination=destination,
                        error=f"Destination already exists: {destination}",
                    )
                occupied = {child.name for child in destination.parent.iterdir()}
                destination = destination.parent / self.namer.reserve(destination.name, occupied)

            move_path(self.content_path(entry), destination)
        except OSError as e:
            logger.debug("Restore of %s failed", entry.name, exc_info=True)
            return EntryResult(
                target=entry.name,
                success=False,
                action="error",
                entry=entry,
                destination=destination,
                error=e.strerror or str(e),
            )

        self._drop_metadata(entry.name)
        logger.info("Restored: %s -> %s", entry.name, destination)
        return EntryResult(
            target=entry.name,
            success=True,
            action="restored",
            entry=entry,
            destination=destination,
        )

    def purge(self, entries: Iterable[TrashEntry]) -> list[EntryResult]:
        """Permanently delete entries.

        Entries missing from the current enumeration are left alone.

        Args:
            entries: Entries to delete.

        Returns:
            One result per entry.

        """
        live = self._snapshot()
        results: list[EntryResult] = []

        for entry in entries:
            if live.get(entry.name) != entry:
                results.append(
                    EntryResult(
                        target=entry.name,
                        success=False,
                        action="skipped",
                        entry=entry,
                        error="No such entry in holding area",
                    )
                )
                continue

            try:
                delete_path(self.content_path(entry))
            except OSError as e:
                logger.debug("Purge of %s failed", entry.name, exc_info=True)
                results.append(
                    EntryResult(
                        target=entry.name,
                        success=False,
                        action="error",
                        entry=entry,
                        error=e.strerror or str(e),
                    )
                )
                continue

            self._drop_metadata(entry.name)
            del live[entry.name]
            logger.info("Purged: %s", entry.name)
            results.append(
                EntryResult(target=entry.name, success=True, action="purged", entry=entry)
            )

        return results

    def _drop_metadata(self, name: str) -> None:
        """Remove a metadata record after its content is gone."""
        try:
            self.metadata_path(name).unlink(missing_ok=True)
        except OSError as e:
            # The orphaned record is skipped by enumerate and keeps the name reserved.
            logger.warning("Could not remove metadata for %s: %s", name, e)
