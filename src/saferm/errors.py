"""Exception types raised by the trash engine."""

from __future__ import annotations


class SafeRmError(OSError):
    """Base class for saferm failures."""


class NotFoundError(SafeRmError):
    """A target path or trash entry does not exist."""


class TargetIsDirectoryError(SafeRmError):
    """A directory was targeted without recursion."""


class MoveFailedError(SafeRmError):
    """Moving an item into or out of the holding area failed."""


class PartialMoveError(MoveFailedError):
    """A copied directory's source could only be partly deleted.

    The destination copy is complete and is kept.
    """


class NameConflictError(SafeRmError):
    """A holding-area name is already taken."""


class HoldingAreaUnavailableError(SafeRmError):
    """The holding area cannot be created or read."""


class ConfigError(ValueError):
    """Invalid configuration value."""
