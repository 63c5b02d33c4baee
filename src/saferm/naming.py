"""Derive unique names for items entering a crowded directory."""

from __future__ import annotations

import time
from collections.abc import Callable, Container
from datetime import datetime

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def split_name(name: str) -> tuple[str, str]:
    """Split a filename into stem and extension.

    Names without a usable stem (``.bashrc``) or extension (``Makefile``)
    keep the literal filename as the stem.

    Args:
        name: Filename to split.

    Returns:
        (stem, extension) tuple; extension includes the leading dot.

    """
    dot = name.rfind(".")
    if dot <= 0 or dot == len(name) - 1:
        return name, ""
    return name[:dot], name[dot:]


class NameConflictResolver:
    """Picks a free name given a snapshot of occupied names."""

    def __init__(self, style: str = "counter", clock: Callable[[], float] = time.time) -> None:
        """Initialize the resolver.

        Args:
            style: "counter" (``name-1.ext``) or "timestamp"
                (``name_YYYYMMDD_HHMMSS.ext``).
            clock: Source of the current time, seconds since epoch.

        """
        if style not in ("counter", "timestamp"):
            raise ValueError(f"Unknown conflict style: {style!r}")
        self.style = style
        self.clock = clock

    def reserve(self, desired_name: str, occupied: Container[str]) -> str:
        """Return desired_name, or a disambiguated variant if it is taken.

        Args:
            desired_name: Name the item would like to have.
            occupied: Names already in use in the target directory.

        Returns:
            A name not contained in occupied.

        """
        if desired_name not in occupied:
            return desired_name

        stem, ext = split_name(desired_name)

        if self.style == "timestamp":
            stamp = datetime.fromtimestamp(self.clock()).strftime(TIMESTAMP_FORMAT)
            stem = f"{stem}_{stamp}"
            candidate = f"{stem}{ext}"
            if candidate not in occupied:
                return candidate

        counter = 1
        while True:
            candidate = f"{stem}-{counter}{ext}"
            if candidate not in occupied:
                return candidate
            counter += 1
