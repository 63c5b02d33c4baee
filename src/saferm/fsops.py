"""Filesystem primitives shared by stores and the dispatcher."""

from __future__ import annotations

import contextlib
import errno
import os
import shutil
from pathlib import Path

from .errors import PartialMoveError


def delete_path(path: Path) -> None:
    """Permanently delete a file, symlink or directory tree.

    Symlinks are unlinked, never followed.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def move_path(source: Path, destination: Path) -> None:
    """Move source to destination.

    Uses rename, falling back to copy-then-delete across filesystems. If the
    copy fails, the partial destination is removed and source is left alone.
    If a file or symlink source cannot be deleted after copying, the copy is
    removed again.

    Raises:
        PartialMoveError: If a directory source was copied but only partly
            deleted. The destination copy is kept.
        OSError: If the move fails.

    """
    try:
        os.rename(source, destination)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    is_tree = source.is_dir() and not source.is_symlink()
    try:
        if is_tree:
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination, follow_symlinks=False)
    except OSError:
        _discard(destination)
        raise

    try:
        delete_path(source)
    except OSError as e:
        if not os.path.lexists(source):
            return
        if is_tree:
            raise PartialMoveError(e.errno, e.strerror or str(e), str(source)) from e
        _discard(destination)
        raise


def _discard(path: Path) -> None:
    if os.path.lexists(path):
        with contextlib.suppress(OSError):
            delete_path(path)
