from __future__ import annotations

import enum
import errno
import os
import shutil
from pathlib import Path
from typing import Iterator

from .errors import InvalidPath


class EntryKind(enum.Enum):
    FILE = "file"
    CYCLE = "cycle"
    UNREADABLE = "unreadable"


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _dir_key(path: Path) -> tuple[int, int]:
    st = path.stat()
    return st.st_dev, st.st_ino


def walk_tree(root: Path) -> Iterator[tuple[Path, EntryKind]]:
    """Yield every file below ``root``, following directory symlinks.

    A directory that is already an ancestor on the current walk path is
    yielded as ``CYCLE`` and not entered, as is a symlink that loops back
    on itself.
    """
    root = Path(root)
    stack = [(root, frozenset({_dir_key(root)}))]
    while stack:
        directory, ancestors = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            yield directory, EntryKind.UNREADABLE
            continue
        subdirs = []
        for entry in entries:
            path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=True)
            except OSError as exc:
                yield path, EntryKind.CYCLE if exc.errno == errno.ELOOP else EntryKind.UNREADABLE
                continue
            if not is_dir:
                if entry.is_file(follow_symlinks=True):
                    yield path, EntryKind.FILE
                elif entry.is_symlink():
                    yield path, EntryKind.UNREADABLE
                continue
            try:
                key = _dir_key(path)
            except OSError:
                yield path, EntryKind.UNREADABLE
                continue
            if key in ancestors:
                yield path, EntryKind.CYCLE
                continue
            subdirs.append((path, ancestors | {key}))
        stack.extend(reversed(subdirs))


def write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def clean_output_dir(output_dir: Path, project_root: Path) -> bool:
    if not output_dir.exists():
        return False
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise InvalidPath("refusing to clean the project root", output_dir)
    if not output_resolved.is_relative_to(root_resolved):
        raise InvalidPath("refusing to clean a directory outside the project root", output_dir)
    shutil.rmtree(output_dir)
    return True
