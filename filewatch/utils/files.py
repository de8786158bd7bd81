"""
Filewatch File Helpers.

Timestamp lookup and text writing.
Requires Python 3.11+.
"""

import os
from pathlib import Path


def last_modified_ns(path: Path) -> int | None:
    """
    Read the modification time of a file.

    Args:
        path: File to inspect

    Returns:
        Modification time in nanoseconds, or None if the file does not exist

    Raises:
        OSError: If the timestamp cannot be read for any other reason
    """
    try:
        return os.stat(path).st_mtime_ns
    except (FileNotFoundError, NotADirectoryError):
        return None


def write_text_file(path: str | os.PathLike[str], text: str) -> None:
    """
    Write text as a single UTF-8 line, replacing the file content.

    Convenience helper for producing changes, the watchers only read
    timestamps.
    """
    Path(path).write_text(text + "\n", encoding="utf-8")
