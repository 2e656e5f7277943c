"""
Move execution for the Media Relocation Tool.

Scatter flattens files from the subfolders of a source directory into one
target directory, prefixing each name with its folder. Gather reverses it.
Every mutation goes through a PathGuard; an AccessDenied aborts the whole
run, anything else is recorded per file and the run continues. Moves that
already happened stay in place (there is no rollback).
"""

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from tqdm import tqdm

from .errors import DestinationExists, InvalidSizeError
from .guard import PathGuard
from .naming import decode_name, encode_name, is_lossy
from .scanner import FileCandidate, list_flat_files, matches, normalize_extensions, scan_source


MessageCallback = Callable[[str, str], None]


@dataclass
class MoveOutcome:
    """Counters and log lines produced by one scatter or gather run."""
    operation: str
    dry_run: bool = False
    files_moved: int = 0
    folders_created: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    source_missing: bool = False
    aborted: str | None = None
    log: list[str] = field(default_factory=list)
    moves: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.files_failed == 0 and not self.source_missing and self.aborted is None

    def to_report(self) -> dict:
        return {
            "operation": self.operation,
            "dry_run": self.dry_run,
            "executed_at": datetime.now().isoformat(timespec='seconds'),
            "source_missing": self.source_missing,
            "aborted": self.aborted,
            "files_moved": self.files_moved,
            "folders_created": self.folders_created,
            "files_skipped": self.files_skipped,
            "files_failed": self.files_failed,
            "moves": self.moves,
            "errors": self.errors,
            "log": self.log,
        }


def _check_sizes(min_size: int | None, max_size: int | None) -> None:
    for label, value in (("minimum", min_size), ("maximum", max_size)):
        if value is not None and value < 0:
            raise InvalidSizeError(f"The {label} size cannot be negative: {value}")
    if min_size is not None and max_size is not None and min_size > max_size:
        raise InvalidSizeError(f"Minimum size ({min_size}) is larger than maximum size ({max_size})")


class RelocationEngine:
    """
    Scatter and gather files inside a guarded root.

    Args:
        guard: The PathGuard every path is checked against.
        dry_run: If True, check and report everything but touch nothing.
        overwrite: If True, an existing destination file is replaced.
            Otherwise the move is refused and counted as a failure.
        show_progress: Show a tqdm progress bar while moving.
        on_message: Optional ``(level, message)`` callback for progress lines.
    """

    def __init__(
        self,
        guard: PathGuard,
        dry_run: bool = False,
        overwrite: bool = False,
        show_progress: bool = False,
        on_message: MessageCallback | None = None
    ):
        self.guard = guard
        self.dry_run = dry_run
        self.overwrite = overwrite
        self.show_progress = show_progress
        self.on_message = on_message

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _emit(self, outcome: MoveOutcome, level: str, message: str) -> None:
        outcome.log.append(f"[{level}] {message}")
        if self.on_message:
            self.on_message(level, message)

    def _fail(self, outcome: MoveOutcome, src: Path, dst: Path, error: Exception) -> None:
        outcome.files_failed += 1
        outcome.errors.append({"src": str(src), "dst": str(dst), "error": str(error)})
        self._emit(outcome, "ERROR", f"{error}: {src.name}")

    def _ensure_dir(self, path: Path, outcome: MoveOutcome, planned: set[Path]) -> None:
        """Create ``path`` through the guard if it is missing, counting the creation."""
        path = self.guard.authorize(path)
        if path.is_dir() or path in planned:
            return
        if path.exists():
            raise NotADirectoryError(f"Not a directory: {path}")

        if self.dry_run:
            planned.add(path)
            self._emit(outcome, "INFO", f"Would create folder: {path}")
        else:
            self.guard.guarded_operation(path, lambda: path.mkdir(parents=True, exist_ok=True)).unwrap()
            self._emit(outcome, "INFO", f"Created folder: {path}")
        outcome.folders_created += 1

    def _move(self, src: Path, dst: Path, outcome: MoveOutcome, planned: set[Path]) -> bool:
        """
        Move one file through the guard.

        Raises:
            AccessDenied: If either path escapes the root.
        """
        src = self.guard.authorize(src)
        dst = self.guard.authorize(dst)

        taken = dst in planned or dst.exists()
        if taken and (not self.overwrite or dst.is_dir()):
            self._fail(outcome, src, dst, DestinationExists(f"Destination exists: {dst}"))
            return False
        planned.add(dst)

        if self.dry_run:
            self._emit(outcome, "INFO", f"Would move: {src.name} to {dst}")
        else:
            try:
                self.guard.guarded_operation(dst, lambda: shutil.move(str(src), str(dst))).unwrap()
            except OSError as e:
                self._fail(outcome, src, dst, e)
                return False
            self._emit(outcome, "INFO", f"Moved: {src.name} to {dst}")

        outcome.files_moved += 1
        outcome.moves.append({"old": str(src), "new": str(dst)})
        return True

    def _progress(self, total: int, desc: str) -> tqdm:
        return tqdm(total=total, unit="file", desc=desc, disable=not self.show_progress, leave=False)

    # -------------------------------------------------------------------------
    # Scatter
    # -------------------------------------------------------------------------

    def scatter(
        self,
        source_dir: str | Path,
        target_dir: str | Path,
        extensions: str | Iterable[str] | None = None,
        min_size: int | None = None,
        max_size: int | None = None
    ) -> MoveOutcome:
        """
        Move matching files from the subfolders of ``source_dir`` into
        ``target_dir``, renamed ``<folder>_<file>``.

        Args:
            source_dir: Directory whose immediate subfolders hold the files.
            target_dir: Flat destination directory (created if missing).
            extensions: Extension filter; empty or None matches every file.
            min_size: Inclusive lower size bound in bytes, or None.
            max_size: Inclusive upper size bound in bytes, or None.

        Returns:
            The MoveOutcome for this run.

        Raises:
            AccessDenied: If any computed path escapes the root.
            InvalidSizeError: If the size bounds are negative or inverted.
        """
        _check_sizes(min_size, max_size)
        ext_filter = normalize_extensions(extensions)
        outcome = MoveOutcome(operation="scatter", dry_run=self.dry_run)

        source = self.guard.authorize(source_dir)
        target = self.guard.authorize(target_dir)

        if not source.is_dir():
            outcome.source_missing = True
            self._emit(outcome, "WARN", f"Source directory does not exist: {source}")
            return outcome

        planned_dirs: set[Path] = set()
        try:
            self._ensure_dir(target, outcome, planned_dirs)
        except OSError as e:
            outcome.aborted = f"Cannot create target directory: {e}"
            self._emit(outcome, "ERROR", outcome.aborted)
            return outcome

        candidates, skipped_folders, unreadable = scan_source(source)
        for folder in skipped_folders:
            self._emit(outcome, "WARN", f"Skipping symlinked folder: {folder}")
        for path in unreadable:
            outcome.files_skipped += 1
            self._emit(outcome, "WARN", f"Skipping unreadable file: {path}")

        selected: list[FileCandidate] = []
        for candidate in candidates:
            if candidate.path.parent == target:
                # The target itself sits inside the source
                continue
            if matches(candidate, ext_filter, min_size, max_size):
                selected.append(candidate)
            else:
                outcome.files_skipped += 1

        for folder_name in sorted({c.folder_name for c in selected if is_lossy(c.folder_name)}):
            self._emit(outcome, "WARN", f"Folder name contains '_', gather will not restore it exactly: {folder_name}")

        planned: set[Path] = set()
        with self._progress(len(selected), "Scatter") as pbar:
            for candidate in selected:
                new_name = encode_name(candidate.folder_name, candidate.name)
                self._move(candidate.path, target / new_name, outcome, planned)
                pbar.update(1)

        self._emit(
            outcome, "INFO",
            f"Scatter complete: {outcome.files_moved} moved, {outcome.files_failed} failed, "
            f"{outcome.files_skipped} skipped"
        )
        return outcome

    # -------------------------------------------------------------------------
    # Gather
    # -------------------------------------------------------------------------

    def gather(self, flat_dir: str | Path, original_dir: str | Path) -> MoveOutcome:
        """
        Move files from ``flat_dir`` back to ``original_dir/<folder>/<file>``.

        Files whose names carry no encoded folder are left where they are.
        Missing folders are recreated.

        Raises:
            AccessDenied: If any computed path escapes the root.
        """
        outcome = MoveOutcome(operation="gather", dry_run=self.dry_run)

        flat = self.guard.authorize(flat_dir)
        original = self.guard.authorize(original_dir)

        if not flat.is_dir():
            outcome.source_missing = True
            self._emit(outcome, "WARN", f"Source directory does not exist: {flat}")
            return outcome

        files = list_flat_files(flat)
        planned_dirs: set[Path] = set()
        planned: set[Path] = set()

        with self._progress(len(files), "Gather") as pbar:
            for path in files:
                pbar.update(1)
                decoded = decode_name(path.name)
                if decoded is None:
                    outcome.files_skipped += 1
                    self._emit(outcome, "INFO", f"Skipping {path.name}: no folder prefix")
                    continue

                folder_name, file_name = decoded
                folder_path = original / folder_name
                try:
                    self._ensure_dir(folder_path, outcome, planned_dirs)
                except OSError as e:
                    self._fail(outcome, path, folder_path / file_name, e)
                    continue
                self._move(path, folder_path / file_name, outcome, planned)

        self._emit(
            outcome, "INFO",
            f"Gather complete: {outcome.files_moved} moved, {outcome.folders_created} folders created, "
            f"{outcome.files_failed} failed"
        )
        return outcome


def scatter(
    root: str | Path,
    source_dir: str | Path,
    target_dir: str | Path,
    extensions: str | Iterable[str] | None = None,
    min_size: int | None = None,
    max_size: int | None = None,
    dry_run: bool = False
) -> MoveOutcome:
    """Run a scatter confined to ``root`` with default engine settings."""
    engine = RelocationEngine(PathGuard(root), dry_run=dry_run)
    return engine.scatter(source_dir, target_dir, extensions, min_size, max_size)


def gather(
    root: str | Path,
    flat_dir: str | Path,
    original_dir: str | Path,
    dry_run: bool = False
) -> MoveOutcome:
    """Run a gather confined to ``root`` with default engine settings."""
    engine = RelocationEngine(PathGuard(root), dry_run=dry_run)
    return engine.gather(flat_dir, original_dir)
