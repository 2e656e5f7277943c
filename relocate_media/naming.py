"""
Encoded file names used to remember where a scattered file came from.

A scattered file is renamed ``<folder>_<file>``. Only the first underscore
is the delimiter, so a folder name that itself contains an underscore does
not survive a round trip (``my_pics/a.png`` comes back as ``my/pics_a.png``).
"""

DELIMITER = "_"


def encode_name(folder_name: str, file_name: str) -> str:
    """Build the flat name for ``file_name`` taken from ``folder_name``."""
    return f"{folder_name}{DELIMITER}{file_name}"


def decode_name(encoded: str) -> tuple[str, str] | None:
    """
    Split an encoded name at its first underscore.

    Args:
        encoded: A flat file name such as ``Vacation_beach.png``.

    Returns:
        ``(folder_name, file_name)``, or None when the name has no
        underscore or either part would be empty.
    """
    index = encoded.find(DELIMITER)
    if index <= 0:
        return None

    folder_name = encoded[:index]
    file_name = encoded[index + 1:]
    if not file_name:
        return None
    return folder_name, file_name


def is_lossy(folder_name: str) -> bool:
    """True if a file from ``folder_name`` would be restored to the wrong place."""
    return DELIMITER in folder_name
