"""Run one saferm operation over a set of paths or trash names."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import HoldingAreaUnavailableError
from .fsops import delete_path
from .naming import NameConflictResolver
from .paths import PathKind, PathResolver
from .retention import is_expired, within_window
from .store import EntryResult, TrashEntry, TrashStore, open_store

if TYPE_CHECKING:
    from .config import SafeRmConfig

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[list[TrashEntry]], bool]


class Operation(Enum):
    """Commands; exactly one runs per invocation."""

    REMOVE = "rm"
    LIST = "list"
    RECOVER = "recover"
    RECOVER_ALL = "recover-all"
    PURGE = "purge"
    TIDY = "tidy"


@dataclass(frozen=True)
class RemoveOptions:
    """Flags controlling how remove treats each target."""

    recursive: bool = False
    force: bool = False
    dir: bool = False
    permanent: bool = False


@dataclass
class Invocation:
    """A parsed command: what to run and on what."""

    operation: Operation = Operation.REMOVE
    targets: list[str] = field(default_factory=list)
    days: int | None = None
    options: RemoveOptions = field(default_factory=RemoveOptions)
    rename_on_conflict: bool | None = None


@dataclass
class OperationReport:
    """Outcome of one invocation."""

    operation: Operation
    results: list[EntryResult] = field(default_factory=list)
    entries: list[TrashEntry] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failures(self) -> list[EntryResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failures


def decline(entries: list[TrashEntry]) -> bool:
    """Confirmation callback that never agrees."""
    return False


class OperationDispatcher:
    """Applies remove, list, recover, recover-all, purge and tidy to a store."""

    def __init__(
        self,
        store: TrashStore,
        paths: PathResolver,
        namer: NameConflictResolver,
        *,
        confirm: ConfirmCallback = decline,
        clock: Callable[[], float] = time.time,
        tidy_days: int = 30,
        rename_on_conflict: bool = False,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: Holding area to operate on.
            paths: Resolver for the holding root and target classification.
            namer: Resolver for holding-area name collisions.
            confirm: Asked before tidy purges anything; must return True to proceed.
            clock: Source of "now" for retention windows.
            tidy_days: Default tidy retention window.
            rename_on_conflict: Default restore conflict policy.

        """
        self.store = store
        self.paths = paths
        self.namer = namer
        self.confirm = confirm
        self.clock = clock
        self.tidy_days = tidy_days
        self.rename_on_conflict = rename_on_conflict
        self._holding_ready = False

    @classmethod
    def from_config(
        cls,
        config: SafeRmConfig,
        *,
        confirm: ConfirmCallback = decline,
        clock: Callable[[], float] = time.time,
    ) -> OperationDispatcher:
        """Build a dispatcher with the store and resolvers config selects."""
        paths = PathResolver(config)
        store = open_store(config, paths, clock=clock)
        return cls(
            store,
            paths,
            NameConflictResolver(config.conflict_style, clock=clock),
            confirm=confirm,
            clock=clock,
            tidy_days=config.tidy_days,
            rename_on_conflict=config.rename_on_restore,
        )

    def dispatch(self, invocation: Invocation) -> OperationReport:
        """Run the operation an invocation selects.

        Raises:
            HoldingAreaUnavailableError: If the holding area cannot be used at all.

        """
        operation = invocation.operation
        rename = invocation.rename_on_conflict

        if operation is Operation.REMOVE:
            return self.remove(invocation.targets, invocation.options)
        if operation is Operation.LIST:
            return self.list_entries(invocation.days or 0)
        if operation is Operation.RECOVER:
            return self.recover(invocation.targets, rename_on_conflict=rename)
        if operation is Operation.RECOVER_ALL:
            return self.recover_all(invocation.days or 0, rename_on_conflict=rename)
        if operation is Operation.PURGE:
            return self.purge(invocation.targets)
        if operation is Operation.TIDY:
            return self.tidy(invocation.days)
        raise ValueError(f"Unknown operation: {operation}")

    # Remove

    def remove(
        self, targets: Iterable[str | Path], options: RemoveOptions | None = None
    ) -> OperationReport:
        """Move targets to the trash, or delete them when options say so.

        Per-target failures are logged and recorded; the batch continues.

        Raises:
            HoldingAreaUnavailableError: If the holding area cannot be created.

        """
        options = options or RemoveOptions()
        report = OperationReport(Operation.REMOVE)
        for target in targets:
            report.results.append(self._remove_one(Path(target), options))
        return report

    def _remove_one(self, path: Path, options: RemoveOptions) -> EntryResult:
        target = str(path)
        kind = self.paths.classify(path)

        if kind is PathKind.MISSING:
            return self._refuse(target, "No such file or directory", quiet=options.force)
        if self.paths.is_protected(path):
            return self._refuse(target, "Refusing to remove protected path")
        if path.name in ("", ".", ".."):
            return self._refuse(target, "Refusing to remove '.' or '..'")

        try:
            if kind is PathKind.DIRECTORY:
                if options.dir and not any(path.iterdir()):
                    path.rmdir()
                    logger.info("Removed empty directory: %s", path)
                    return EntryResult(target=target, success=True, action="removed")
                if not options.recursive:
                    if options.dir:
                        return self._refuse(target, "Directory not empty")
                    return self._refuse(target, "Is a directory", quiet=options.force)

            if options.permanent:
                delete_path(path)
                logger.info("Permanently deleted: %s", path)
                return EntryResult(target=target, success=True, action="deleted")

            self._prepare_holding_area()
            name = self.namer.reserve(path.name, self.store.occupied_names())
            entry = self.store.insert(path, name)
        except HoldingAreaUnavailableError:
            raise
        except OSError as e:
            return self._refuse(target, e.strerror or str(e))

        return EntryResult(
            target=target,
            success=True,
            action="trashed",
            entry=entry,
            destination=self.store.content_path(entry),
        )

    def _prepare_holding_area(self) -> None:
        if self._holding_ready:
            return
        self.paths.resolve_holding_root(create=True)
        self.store.ensure_layout()
        self._holding_ready = True

    @staticmethod
    def _refuse(target: str, reason: str, *, quiet: bool = False) -> EntryResult:
        if quiet:
            logger.debug("Skipping %s: %s", target, reason)
            return EntryResult(target=target, success=True, action="skipped", error=reason)
        logger.error("cannot remove '%s': %s", target, reason)
        return EntryResult(target=target, success=False, action="error", error=reason)

    # Queries

    def list_entries(self, days: int = 0) -> OperationReport:
        """List entries deleted within the last days days, newest first.

        A window of 0 lists everything.
        """
        now = self.clock()
        entries = [e for e in self.store.enumerate() if within_window(e.deleted_at, now, days)]
        entries.sort(key=lambda e: (-e.deleted_at, e.name))
        return OperationReport(Operation.LIST, entries=entries)

    def _named(self, names: Iterable[str]) -> list[TrashEntry]:
        wanted = set(names)
        return [e for e in self.store.enumerate() if e.name in wanted]

    # Restore

    def recover(
        self, names: Iterable[str], *, rename_on_conflict: bool | None = None
    ) -> OperationReport:
        """Restore entries whose stored name matches one of names exactly."""
        return self._restore(Operation.RECOVER, self._named(names), rename_on_conflict)

    def recover_all(
        self, days: int = 0, *, rename_on_conflict: bool | None = None
    ) -> OperationReport:
        """Restore every entry deleted within the last days days (0 = all)."""
        now = self.clock()
        entries = [e for e in self.store.enumerate() if within_window(e.deleted_at, now, days)]
        return self._restore(Operation.RECOVER_ALL, entries, rename_on_conflict)

    def _restore(
        self, operation: Operation, entries: list[TrashEntry], rename_on_conflict: bool | None
    ) -> OperationReport:
        report = OperationReport(operation, entries=entries)
        if not entries:
            logger.debug("%s: no items found", operation.value)
            return report

        if rename_on_conflict is None:
            rename_on_conflict = self.rename_on_conflict

        report.results = self.store.restore(entries, rename_on_conflict=rename_on_conflict)
        self._log_failures("recover", report.results)
        return report

    # Permanent deletion

    def purge(self, names: Iterable[str]) -> OperationReport:
        """Permanently delete entries whose stored name matches one of names."""
        entries = self._named(names)
        report = OperationReport(Operation.PURGE, entries=entries)
        if not entries:
            logger.debug("purge: no items found")
            return report

        report.results = self.store.purge(entries)
        self._log_failures("purge", report.results)
        return report

    def tidy(self, days: int | None = None) -> OperationReport:
        """Purge entries at least days old, after confirmation.

        Nothing is touched unless the confirm callback returns True.
        """
        if days is None:
            days = self.tidy_days

        now = self.clock()
        expired = [e for e in self.store.enumerate() if is_expired(e.deleted_at, now, days)]
        report = OperationReport(Operation.TIDY, entries=expired)
        if not expired:
            logger.debug("tidy: nothing older than %d days", days)
            return report

        if not self.confirm(expired):
            logger.info("Tidy cancelled; nothing was deleted")
            report.cancelled = True
            return report

        report.results = self.store.purge(expired)
        self._log_failures("purge", report.results)
        return report

    @staticmethod
    def _log_failures(verb: str, results: list[EntryResult]) -> None:
        for result in results:
            if not result.success:
                logger.error("cannot %s '%s': %s", verb, result.target, result.error)
