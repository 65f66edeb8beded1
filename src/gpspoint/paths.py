"""Absolute/relative resolution of file references stored in a track file."""

from __future__ import annotations

import os
from enum import Enum


class FileRefFormat(str, Enum):
    """How file references (waypoint images) are written."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"


def make_absolute_filename(filename: str, dirpath: str | None) -> str | None:
    """Resolve `filename` against `dirpath` (or the working directory).

    Returns None when `filename` is empty or already absolute, in which case
    the caller keeps the original text.
    """
    if not filename or os.path.isabs(filename):
        return None
    base = dirpath if dirpath else os.getcwd()
    return os.path.normpath(os.path.join(os.path.abspath(base), filename))


def make_relative_filename(dirpath: str, filename: str) -> str | None:
    """Express absolute `filename` relative to `dirpath`.

    Returns None for relative input or when no relative form exists
    (e.g. different drives on Windows).
    """
    if not filename or not os.path.isabs(filename):
        return None
    try:
        return os.path.relpath(filename, os.path.abspath(dirpath))
    except ValueError:
        return None
