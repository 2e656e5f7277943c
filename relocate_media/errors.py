"""
Exception types for the Media Relocation Tool.
"""


class RelocationError(Exception):
    """Base error for the project."""


class AccessDenied(RelocationError):
    """A path resolved outside the configured root directory."""

    def __init__(self, path, root):
        self.path = path
        self.root = root
        super().__init__(f"Access to the path is denied: {path} (outside {root})")


class DestinationExists(RelocationError):
    pass


class InvalidSizeError(RelocationError, ValueError):
    pass
