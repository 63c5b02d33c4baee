"""Holding area backed by the freedesktop.org home trash.

Layout follows the Trash specification: content lives in ``files/`` and
each item has an ``info/<name>.trashinfo`` record::

    [Trash Info]
    Path=/home/user/notes%20old.txt
    DeletionDate=2024-05-01T09:30:00

Items trashed by desktop file managers show up here and vice versa.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from urllib.parse import quote, unquote

from ..paths import PathKind, classify
from .base import FileTrashStore, TrashEntry

SECTION = "[Trash Info]"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class FreedesktopTrashStore(FileTrashStore):
    """Reads and writes the XDG home trash."""

    backend = "freedesktop"
    metadata_suffix = ".trashinfo"

    def _timestamp(self) -> float:
        # DeletionDate has one-second resolution
        return float(int(self.clock()))

    def _format_metadata(self, entry: TrashEntry) -> str:
        deletion_date = datetime.fromtimestamp(entry.deleted_at).strftime(DATE_FORMAT)
        path = quote(str(entry.original_path), safe="/")
        return f"{SECTION}\nPath={path}\nDeletionDate={deletion_date}\n"

    def _parse_metadata(self, name: str, text: str) -> TrashEntry:
        original: str | None = None
        deletion_date: str | None = None
        in_section = False

        for line in text.splitlines():
            line = line.strip()
            if line.startswith("["):
                in_section = line == SECTION
                continue
            if not in_section or "=" not in line:
                continue
            key, value = line.split("=", 1)
            if key == "Path":
                original = unquote(value)
            elif key == "DeletionDate":
                deletion_date = value

        if not original:
            raise ValueError("missing Path")
        if not deletion_date:
            raise ValueError("missing DeletionDate")

        original_path = Path(original)
        if not original_path.is_absolute():
            # Relative paths are relative to the directory holding the trash
            original_path = self.root.parent / original_path

        kind = classify(self.files_dir / name)
        if kind is PathKind.MISSING:
            kind = PathKind.FILE

        return TrashEntry(
            name=name,
            original_location=original_path.parent,
            original_name=original_path.name,
            deleted_at=datetime.fromisoformat(deletion_date).timestamp(),
            kind=kind.value,
        )
