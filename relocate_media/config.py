"""
Runtime settings for the Media Relocation Tool.

There is no settings file. Values come from the environment and are
overridden by command-line flags.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path

from .executor import MessageCallback, RelocationEngine
from .guard import PathGuard

ROOT_ENV = "RELOCATE_ROOT"
CASE_ENV = "RELOCATE_CASE_SENSITIVE"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(value: str | None) -> bool | None:
    if value is None or not value.strip():
        return None
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{CASE_ENV} must be one of {sorted(_TRUE | _FALSE)}, got {value!r}")


@dataclass(frozen=True)
class RelocationConfig:
    """Settings shared by every scatter/gather run in one process."""
    root: Path
    case_sensitive: bool | None = None
    dry_run: bool = False
    overwrite: bool = False
    show_progress: bool = True

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "RelocationConfig":
        """
        Build settings from ``RELOCATE_ROOT`` and ``RELOCATE_CASE_SENSITIVE``.

        The root falls back to the current working directory.
        """
        env = os.environ if environ is None else environ
        root = env.get(ROOT_ENV) or os.getcwd()
        return cls(root=Path(root), case_sensitive=_parse_bool(env.get(CASE_ENV)))

    def with_overrides(self, **changes) -> "RelocationConfig":
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def build_engine(config: RelocationConfig, on_message: MessageCallback | None = None) -> RelocationEngine:
    guard = PathGuard(config.root, case_sensitive=config.case_sensitive)
    return RelocationEngine(
        guard,
        dry_run=config.dry_run,
        overwrite=config.overwrite,
        show_progress=config.show_progress,
        on_message=on_message,
    )
