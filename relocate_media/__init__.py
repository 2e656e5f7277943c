"""
Media Relocation Tool
=====================

Moves files out of the subfolders of a directory into one flat folder,
renaming each ``<folder>_<file>``, and moves them back again. Every file
operation is confined to a single root directory.
"""

__version__ = "1.0.0"

from .errors import RelocationError, AccessDenied, DestinationExists, InvalidSizeError
from .guard import PathGuard, GuardResult, is_within_root
from .naming import encode_name, decode_name
from .executor import RelocationEngine, MoveOutcome, scatter, gather
from .config import RelocationConfig, build_engine

__all__ = [
    "RelocationError",
    "AccessDenied",
    "DestinationExists",
    "InvalidSizeError",
    "PathGuard",
    "GuardResult",
    "is_within_root",
    "encode_name",
    "decode_name",
    "RelocationEngine",
    "MoveOutcome",
    "scatter",
    "gather",
    "RelocationConfig",
    "build_engine",
]
