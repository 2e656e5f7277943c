"""
Directory scanning and candidate filtering.

Functions for listing the files one folder level below a source directory
and deciding which of them a scatter should move.
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class FileCandidate:
    """A file found directly inside one subfolder of the source directory."""
    path: Path
    folder_name: str
    name: str
    size: int
    ext: str


def normalize_extensions(extensions: str | Iterable[str] | None) -> set[str]:
    """
    Normalize an extension filter to a set of lowercase, dot-prefixed suffixes.

    Accepts a comma-separated string (``".jpg, PNG"``) or any iterable of
    strings. Blank entries are dropped; an empty result means "match all".
    """
    if extensions is None:
        return set()
    if isinstance(extensions, str):
        extensions = extensions.replace('[', '').replace(']', '').split(',')

    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith('.') else f'.{ext}')
    return normalized


def matches(
    candidate: FileCandidate,
    extensions: set[str] | None = None,
    min_size: int | None = None,
    max_size: int | None = None
) -> bool:
    """
    Check a candidate against the scatter filters.

    Both size bounds are inclusive; None means unbounded on that side.
    """
    if extensions and candidate.ext not in extensions:
        return False
    if min_size is not None and candidate.size < min_size:
        return False
    if max_size is not None and candidate.size > max_size:
        return False
    return True


def list_subfolders(source: Path) -> tuple[list[Path], list[Path]]:
    """
    List the immediate subfolders of ``source``.

    Returns:
        ``(folders, skipped)`` where ``skipped`` holds symlinked folders,
        which are never traversed.
    """
    folders = []
    skipped = []
    for entry in sorted(source.iterdir()):
        if not entry.is_dir():
            continue
        if entry.is_symlink():
            skipped.append(entry)
            continue
        folders.append(entry)
    return folders, skipped


def scan_folder(folder: Path) -> tuple[list[FileCandidate], list[Path]]:
    """
    Snapshot the regular files directly inside ``folder`` (non-recursive).

    Returns:
        ``(candidates, unreadable)`` where ``unreadable`` holds entries whose
        metadata could not be read.
    """
    candidates = []
    unreadable = []
    for entry in sorted(folder.iterdir()):
        try:
            st = entry.lstat()
        except OSError:
            unreadable.append(entry)
            continue
        if not stat.S_ISREG(st.st_mode):
            continue

        candidates.append(FileCandidate(
            path=Path(os.path.abspath(entry)),
            folder_name=folder.name,
            name=entry.name,
            size=st.st_size,
            ext=entry.suffix.lower() if entry.suffix else '',
        ))
    return candidates, unreadable


def scan_source(source: Path) -> tuple[list[FileCandidate], list[Path], list[Path]]:
    """
    Snapshot every file one folder level below ``source``.

    Files sitting directly in ``source`` and anything nested deeper than one
    subfolder are ignored.

    Returns:
        ``(candidates, skipped_folders, unreadable_files)``.
    """
    folders, skipped = list_subfolders(source)
    candidates: list[FileCandidate] = []
    unreadable: list[Path] = []
    for folder in folders:
        found, failed = scan_folder(folder)
        candidates.extend(found)
        unreadable.extend(failed)
    return candidates, skipped, unreadable


def list_flat_files(flat_dir: Path) -> list[Path]:
    """Snapshot the regular files directly inside ``flat_dir``."""
    return [
        Path(os.path.abspath(entry))
        for entry in sorted(flat_dir.iterdir())
        if entry.is_file() and not entry.is_symlink()
    ]
