"""Tests for atomic file writes."""

import os
import stat
from pathlib import Path

import pytest

from bmad_kit.io.atomic import (
    atomic_write,
    commit_staged,
    discard_staged,
    stage_text,
    write_text_atomic,
)


def test_destination_is_replaced_on_success(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "out.md"

    with atomic_write(path) as f:
        f.write("hello\n")

    assert path.read_text(encoding="utf-8") == "hello\n"
    assert [p.name for p in path.parent.iterdir()] == ["out.md"]


def test_interrupted_write_leaves_previous_content(tmp_path: Path) -> None:
    path = tmp_path / "out.md"
    path.write_text("previous", encoding="utf-8")

    with pytest.raises(KeyboardInterrupt):
        with atomic_write(path) as f:
            f.write("partial")
            raise KeyboardInterrupt

    assert path.read_text(encoding="utf-8") == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["out.md"]


def test_staged_files_are_invisible_until_committed(tmp_path: Path) -> None:
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"

    staged = [(stage_text(first, "a"), first), (stage_text(second, "b"), second)]

    assert not first.exists()
    assert not second.exists()
    commit_staged(staged)
    assert first.read_text(encoding="utf-8") == "a"
    assert second.read_text(encoding="utf-8") == "b"


def test_discarded_stage_leaves_no_trace(tmp_path: Path) -> None:
    path = tmp_path / "a.csv"

    discard_staged([(stage_text(path, "a"), path)])

    assert list(tmp_path.iterdir()) == []


def _umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def test_new_files_get_umask_default_mode(tmp_path: Path) -> None:
    path = tmp_path / "out.md"
    staged_destination = tmp_path / "manifest.csv"

    write_text_atomic(path, "content")
    commit_staged([(stage_text(staged_destination, "a"), staged_destination)])

    expected = 0o666 & ~_umask()
    assert stat.S_IMODE(path.stat().st_mode) == expected
    assert stat.S_IMODE(staged_destination.stat().st_mode) == expected


def test_existing_destination_keeps_its_mode(tmp_path: Path) -> None:
    path = tmp_path / "out.md"
    path.write_text("previous", encoding="utf-8")
    path.chmod(0o640)

    write_text_atomic(path, "replaced")

    assert path.read_text(encoding="utf-8") == "replaced"
    assert stat.S_IMODE(path.stat().st_mode) == 0o640
