"""Filesystem helpers for file-mode output."""

import os
import re
from pathlib import Path

from ..errors import OutputError

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def check_output_name(name: str) -> str:
    """Validate a caller supplied file name fragment.

    Args:
        name: File stem, with or without a ``.png`` suffix

    Returns:
        The stem without the ``.png`` suffix

    Raises:
        OutputError: If the name could escape the output folder or is empty
    """
    stem = (name or "").strip()
    if stem.lower().endswith(".png"):
        stem = stem[:-4]

    if not stem or ".." in stem or not _SAFE_NAME_RE.match(stem):
        raise OutputError(
            f"Invalid name {name!r}: use letters, digits, '.', '_' or '-' only"
        )
    return stem


def check_output_folder(folder: str) -> str:
    """Ensure the output folder exists and is writable.

    Args:
        folder: Directory the image will be written to

    Returns:
        The folder with ``~`` expanded

    Raises:
        OutputError: If the folder is missing, not a directory or not writable
    """
    if not folder or not folder.strip():
        raise OutputError("Folder cannot be empty")

    expanded = os.path.expanduser(folder.strip())
    path = Path(expanded)

    if not path.exists():
        raise OutputError(f"Folder does not exist: {folder}")
    if not path.is_dir():
        raise OutputError(f"Folder is not a directory: {folder}")
    if not os.access(path, os.W_OK):
        raise OutputError(f"Folder is not writable: {folder}")

    return expanded


def output_path(folder: str, name: str) -> str:
    """Path of the PNG for ``name`` inside ``folder``."""
    return os.path.join(check_output_folder(folder), f"{check_output_name(name)}.png")


def write_png(folder: str, name: str, data: bytes) -> str:
    """Write PNG bytes to ``folder/name.png``.

    Returns:
        The written path

    Raises:
        OutputError: If validation or the write itself fails
    """
    target = output_path(folder, name)
    try:
        with open(target, "wb") as f:
            f.write(data)
    except OSError as e:
        raise OutputError(f"Failed to write {target}: {e}") from e
    return target
