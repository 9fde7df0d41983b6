"""Output directory handling for Quire.

The output directory is cleared before every build, except for a small set of
reserved entries that belong to the deployment rather than to the site
(a git checkout and a custom domain file). Files are written to a temporary
name next to their destination and renamed into place, so a reader never sees
a half-written page.

Key functions:
- sync_output_dir: Clear or create the output directory.
- write_atomic: Write text to a file in one step.
- copy_file: Copy a file, creating parent directories.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

from .errors import BuildError, OutputIsFileError, WriteError
from .scanner import scan_dir

RESERVED_OUTPUT_NAMES = frozenset({".git", "CNAME"})
OUTPUT_FILE_MODE = 0o644

ConfirmCallback = Callable[[Path], bool]


def sync_output_dir(path: Path, confirm: ConfirmCallback | None = None) -> bool:
    """Prepare the output directory for a build.

    Args:
        path: Output directory.
        confirm: Optional callback asked before an existing directory is
            cleared. Returning False leaves the directory untouched.

    Returns:
        True if the directory is ready, False if the user declined.

    Raises:
        OutputIsFileError: If ``path`` is a regular file.
        BuildError: If the directory cannot be cleared or created.
    """
    if path.is_file():
        raise OutputIsFileError(path)
    if not path.exists():
        try:
            path.mkdir(parents=True)
        except OSError as exc:
            raise WriteError(path, exc) from exc
        return True
    if confirm is not None and not confirm(path):
        return False
    try:
        for entry in scan_dir(path):
            if entry.name in RESERVED_OUTPUT_NAMES:
                continue
            remove_path(entry.path)
    except OSError as exc:
        raise BuildError(path, "failed to remove contents", exc) from exc
    return True


def remove_path(path: Path) -> None:
    """Remove a file or a directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def write_atomic(path: Path, text: str) -> None:
    """Write text to a file, replacing it in a single rename.

    Args:
        path: Destination file. Parent directories are created.
        text: Content to write.

    Raises:
        WriteError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.chmod(tmp_name, OUTPUT_FILE_MODE)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise WriteError(path, exc) from exc


def copy_file(source: Path, dest: Path) -> None:
    """Copy a file, creating parent directories and replacing in one rename.

    Args:
        source: File to copy.
        dest: Destination path.

    Raises:
        WriteError: If the copy fails.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp")
        os.close(fd)
        try:
            shutil.copyfile(source, tmp_name)
            os.chmod(tmp_name, OUTPUT_FILE_MODE)
            os.replace(tmp_name, dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise WriteError(dest, exc) from exc
