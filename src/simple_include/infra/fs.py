from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Path normalization, source-to-target mapping and atomic file persistence.
Every write goes through a temporary sibling file followed by os.replace so a
reader never observes a half-written target file.
"""

import os
import tempfile
from typing import Optional, Tuple

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is blank.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def is_within(path: str, root: str) -> bool:
    """
    Check whether 'path' equals 'root' or lies below it (lexically).

    Args:
        path: Absolute candidate path.
        root: Absolute directory path.

    Returns:
        bool: True if 'path' is inside 'root'.
    """
    path = os.path.normpath(path)
    root = os.path.normpath(root)
    if path == root:
        return True
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False


def map_to_target(path: str, source_root: str, target_root: str) -> str:
    """
    Map a source path to its mirrored location under the target root.

    Args:
        path: Absolute path of an entry under 'source_root'.
        source_root: Absolute source directory.
        target_root: Absolute target directory.

    Returns:
        str: Absolute target path with the same relative path.

    Raises:
        ValueError: If 'path' is not inside 'source_root'.
    """
    if not is_within(path, source_root):
        raise ValueError(f"'{path}' is not inside source root '{source_root}'")
    rel_path = os.path.relpath(os.path.normpath(path), os.path.normpath(source_root))
    if rel_path == os.curdir:
        return os.path.normpath(target_root)
    return os.path.join(os.path.normpath(target_root), rel_path)

# -----------------------------------------------------------------------------
# FILESYSTEM OPERATIONS API
# -----------------------------------------------------------------------------

def safe_mkdir(path: str) -> Tuple[bool, Optional[str]]:
    """
    Attempt to recursively create a directory structure safely.

    Args:
        path: Target directory path.

    Returns:
        Tuple[bool, Optional[str]]: (Success flag, Error message if applicable).
    """
    try:
        os.makedirs(path, exist_ok=True)
        return True, None
    except OSError as e:
        return False, str(e)


def read_bytes(path: str) -> bytes:
    """Read a whole file as raw bytes."""
    with open(path, "rb") as f:
        return f.read()


def write_bytes_atomic(path: str, content: bytes, mode: Optional[int] = None) -> None:
    """
    Replace 'path' with 'content' in a single rename.

    Parent directories are created as needed. The temporary file lives next
    to the destination so the final os.replace never crosses filesystems.

    Args:
        path: Destination file.
        content: Bytes to persist.
        mode: Permission bits for the new file (e.g. copied from the source).

    Raises:
        OSError: If the directory cannot be created or the file written.
    """
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)

    if os.path.isdir(path):
        raise IsADirectoryError(f"Target path is a directory: '{path}'")

    fd, tmp_path = tempfile.mkstemp(prefix=".simple-include-", dir=parent)
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(content)
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
