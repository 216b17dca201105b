from __future__ import annotations

"""
Output Persistence.

Writes rendered bytes to their mirrored target path and mirrors source
directories. Filesystem failures are translated into IOWriteError so the
renderer can record them against the file that caused them.
"""

import os
from typing import Optional

from simple_include.domain.render_errors import IOWriteError
from simple_include.infra.fs import safe_mkdir, write_bytes_atomic

# -----------------------------------------------------------------------------
# FILE OUTPUT MANAGEMENT
# -----------------------------------------------------------------------------

def write_output(target_path: str, content: bytes, mode: Optional[int] = None) -> None:
    """
    Atomically create or overwrite a target file.

    Args:
        target_path: Destination under the target root.
        content: Rendered or copied bytes.
        mode: Permission bits to apply (copied from the source file).

    Raises:
        IOWriteError: If the file or its parent directories cannot be written,
                      including when a directory occupies the target path.
    """
    try:
        write_bytes_atomic(target_path, content, mode)
    except OSError as e:
        raise IOWriteError(target_path, e) from e


def mirror_directory(target_dir: str) -> None:
    """
    Create the target counterpart of a source directory.

    Raises:
        IOWriteError: If a non-directory already occupies the path.
    """
    if os.path.exists(target_dir) and not os.path.isdir(target_dir):
        raise IOWriteError(target_dir, NotADirectoryError("a file occupies the directory path"))

    ok, err = safe_mkdir(target_dir)
    if not ok:
        raise IOWriteError(target_dir, OSError(err))
