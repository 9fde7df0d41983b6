"""Input tree scanning for Quire.

Two modes are offered:

- ``scan_dir`` lists the immediate children of a directory, classified as
  files or directories. Used for the input root, collections and templates.
- ``scan_files_recursive`` lists every file below a directory, relative to it.
  Used for assets.

Both skip entries whose names cannot be represented as text, and both return
entries sorted by name so that builds are reproducible.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import ReadError


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class SourceEntry:
    """An entry found in an input directory.

    Attributes:
        name: File or directory name.
        kind: Whether the entry is a file or a directory.
        path: Full path to the entry.
    """

    name: str
    kind: EntryKind
    path: Path

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


def has_text_name(name: str) -> bool:
    """Check if a filename decoded from the file system is valid text.

    Undecodable bytes are mapped to lone surrogates by Python, which cannot be
    encoded back to UTF-8.

    Args:
        name: Filename as returned by ``os.scandir``.

    Returns:
        True if the name is representable as UTF-8 text.
    """
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return bool(name)


def _classify(entry: os.DirEntry) -> EntryKind | None:
    try:
        if entry.is_dir():
            return EntryKind.DIRECTORY
        if entry.is_file():
            return EntryKind.FILE
    except OSError:
        return None
    return None


def scan_dir(path: Path) -> list[SourceEntry]:
    """List the immediate children of a directory.

    Args:
        path: Directory to list.

    Returns:
        Entries sorted by name. Entries that are neither files nor directories
        (or whose names are not valid text) are left out.

    Raises:
        ReadError: If the directory cannot be listed.
    """
    entries: list[SourceEntry] = []
    try:
        with os.scandir(path) as it:
            for entry in it:
                if not has_text_name(entry.name):
                    continue
                kind = _classify(entry)
                if kind is None:
                    continue
                entries.append(SourceEntry(entry.name, kind, Path(entry.path)))
    except OSError as exc:
        raise ReadError(path, exc) from exc
    entries.sort(key=lambda e: e.name)
    return entries


def scan_files_recursive(root: Path) -> list[PurePosixPath]:
    """List every file below a directory.

    Directories themselves, including the root, are not returned. A missing
    root yields an empty list.

    Args:
        root: Directory to walk.

    Returns:
        Sorted file paths relative to ``root``.
    """
    files: list[PurePosixPath] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if has_text_name(d))
        rel_dir = Path(dirpath).relative_to(root)
        for name in filenames:
            if not has_text_name(name):
                continue
            files.append(PurePosixPath(rel_dir.as_posix()) / name)
    return sorted(files)
