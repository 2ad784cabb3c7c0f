"""Atomic file writes.

Content is written to a temporary file in the destination directory and
renamed over the destination only when writing finished. On every other
exit path (exceptions, KeyboardInterrupt) the temporary file is removed, so
readers never observe a truncated file.
"""

import os
import stat
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO


def _temp_file_for(path: Path) -> tuple[int, Path]:
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    return fd, Path(temp_name)


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


# Umask of the process, read once at import
_DEFAULT_FILE_MODE = 0o666 & ~_current_umask()


def _publish_mode(path: Path) -> int:
    """Mode the published file gets: the existing destination's, else umask default."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return _DEFAULT_FILE_MODE


@contextmanager
def atomic_write(path: Path) -> Generator[TextIO]:
    """Context manager yielding a text handle that is published on success.

    Creates parent directories if they don't exist.

    Example:
        with atomic_write(output_path) as f:
            f.write(content)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = _temp_file_for(path)
    published = False
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            yield f
        temp_path.chmod(_publish_mode(path))
        temp_path.replace(path)
        published = True
    finally:
        if not published:
            temp_path.unlink(missing_ok=True)


def write_text_atomic(path: Path, content: str) -> None:
    """Write content to path atomically."""
    with atomic_write(path) as f:
        f.write(content)


def stage_text(path: Path, content: str) -> Path:
    """Write content next to path without publishing it.

    Returns the staged temporary path. The caller publishes it with
    `commit_staged` or removes it with `discard_staged`.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = _temp_file_for(path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        temp_path.chmod(_publish_mode(path))
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    return temp_path


def commit_staged(staged: list[tuple[Path, Path]]) -> None:
    """Rename each staged temp file over its destination, in order."""
    for temp_path, destination in staged:
        temp_path.replace(destination)


def discard_staged(staged: list[tuple[Path, Path]]) -> None:
    for temp_path, _destination in staged:
        temp_path.unlink(missing_ok=True)
