"""
Path confinement for the Media Relocation Tool.

Every path touched by a file operation must resolve inside a single root
directory. Paths are canonicalized first (absolute, ``..`` collapsed,
symlinks followed) so traversal tricks cannot slip past a plain string
prefix check.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .errors import AccessDenied


def canonical_path(path: str | Path) -> Path:
    """Return the absolute, symlink-free form of ``path`` (which need not exist)."""
    return Path(os.path.realpath(os.path.abspath(os.path.expanduser(str(path)))))


def _comparable(path: Path, case_sensitive: bool | None) -> str:
    text = str(path)
    if case_sensitive is None:
        return os.path.normcase(text)
    return text if case_sensitive else text.casefold()


def is_within_root(
    root: str | Path,
    candidate: str | Path,
    case_sensitive: bool | None = None
) -> bool:
    """
    Check whether ``candidate`` lies inside ``root`` (or is ``root`` itself).

    Args:
        root: The confinement directory.
        candidate: The path to check.
        case_sensitive: None follows the platform (insensitive on Windows,
            sensitive elsewhere). True/False forces the comparison mode.

    Returns:
        True if the canonical candidate path starts with the canonical root,
        compared component by component (``/data/app2`` is not inside
        ``/data/app``).
    """
    root_cmp = _comparable(canonical_path(root), case_sensitive)
    cand_cmp = _comparable(canonical_path(candidate), case_sensitive)

    if cand_cmp == root_cmp:
        return True

    prefix = root_cmp if root_cmp.endswith(os.sep) else root_cmp + os.sep
    return cand_cmp.startswith(prefix)


@dataclass(frozen=True)
class GuardResult:
    """Outcome of a guarded check or operation."""
    ok: bool
    path: Path
    value: Any = None
    error: AccessDenied | None = None

    def unwrap(self) -> Any:
        """Return the operation's value, or raise the AccessDenied it carries."""
        if not self.ok:
            raise self.error
        return self.value


class PathGuard:
    """Authorizes paths against a fixed root directory."""

    def __init__(self, root: str | Path, case_sensitive: bool | None = None):
        self.root = canonical_path(root)
        self.case_sensitive = case_sensitive

    def __repr__(self) -> str:
        return f"PathGuard(root={str(self.root)!r}, case_sensitive={self.case_sensitive!r})"

    def is_within_root(self, path: str | Path) -> bool:
        return is_within_root(self.root, path, self.case_sensitive)

    def check(self, path: str | Path) -> GuardResult:
        resolved = canonical_path(path)
        if is_within_root(self.root, resolved, self.case_sensitive):
            return GuardResult(ok=True, path=resolved)
        return GuardResult(ok=False, path=resolved, error=AccessDenied(path, self.root))

    def authorize(self, path: str | Path) -> Path:
        """
        Validate ``path`` against the root.

        Returns:
            The canonical path.

        Raises:
            AccessDenied: If the path resolves outside the root.
        """
        result = self.check(path)
        if not result.ok:
            raise result.error
        return result.path

    def guarded_operation(self, path: str | Path, operation: Callable[[], Any]) -> GuardResult:
        """
        Run ``operation`` only if ``path`` is inside the root.

        The operation is never invoked for a denied path; the returned
        result carries the AccessDenied instead.
        """
        result = self.check(path)
        if not result.ok:
            return result
        return GuardResult(ok=True, path=result.path, value=operation())
