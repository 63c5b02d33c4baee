"""Self-managed holding area with YAML sidecar records."""

from __future__ import annotations

from pathlib import Path

import yaml

from .base import FileTrashStore, TrashEntry


class DirectoryTrashStore(FileTrashStore):
    """Stores items in ``files/`` and their metadata in ``info/<name>.yaml``."""

    backend = "directory"
    metadata_suffix = ".yaml"

    def _format_metadata(self, entry: TrashEntry) -> str:
        data = {
            "original_path": str(entry.original_path),
            "deleted_at": entry.deleted_at,
            "kind": entry.kind,
        }
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    def _parse_metadata(self, name: str, text: str) -> TrashEntry:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("expected a mapping")

        original = data.get("original_path")
        deleted_at = data.get("deleted_at")
        if not isinstance(original, str) or not original:
            raise ValueError("missing original_path")
        if isinstance(deleted_at, bool) or not isinstance(deleted_at, (int, float)):
            raise ValueError("missing deleted_at")

        original_path = Path(original)
        if not original_path.is_absolute():
            raise ValueError(f"original_path is not absolute: {original}")

        return TrashEntry(
            name=name,
            original_location=original_path.parent,
            original_name=original_path.name,
            deleted_at=float(deleted_at),
            kind=str(data.get("kind", "file")),
        )
