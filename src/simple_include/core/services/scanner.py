from __future__ import annotations

"""
Source Tree Discovery Service.

Enumerates the source tree with an explicit worklist instead of call-stack
recursion and maps every entry to its mirrored target path. The target
root is pruned from the walk when it lives inside the source root, and
symlinked directories are entered at most once.
"""

import logging
import os
from typing import Dict, Iterator, List, Optional, Set

from simple_include.infra.fs import is_within, map_to_target

logger = logging.getLogger(__name__)

ENTRY_DIR = "dir"
ENTRY_FILE = "file"
ENTRY_ERROR = "error"


# ==============================================================================
# PUBLIC API (DISCOVERY SERVICES)
# ==============================================================================

def yield_source_entries(
        source_root: str,
        target_root: str,
        start: Optional[str] = None,
) -> Iterator[Dict[str, str]]:
    """
    Traverse the source tree and yield one record per entry.

    Order is deterministic: a directory, then its files sorted by name, then
    its subdirectories (each handled the same way).

    Args:
        source_root: Absolute source directory.
        target_root: Absolute target directory (excluded from the walk).
        start: Optional directory below 'source_root' to restrict the walk to.

    Yields:
        Dict[str, str]: Entry metadata:
                        - type: 'dir', 'file' or 'error'.
                        - path: Absolute source path.
                        - rel_path: Path relative to 'source_root'.
                        - target_path: Mirrored absolute target path.
                        - error: Description, for 'error' entries only.
    """
    source_root = os.path.abspath(source_root)
    target_root = os.path.abspath(target_root)

    worklist: List[str] = [os.path.abspath(start) if start else source_root]
    visited: Set[str] = set()

    while worklist:
        current = worklist.pop()

        real = os.path.realpath(current)
        if real in visited:
            logger.debug(f"Skipping already visited directory: {current}")
            continue
        visited.add(real)

        yield _entry(ENTRY_DIR, current, source_root, target_root)

        try:
            with os.scandir(current) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.error(f"Cannot list directory '{current}': {e}")
            record = _entry(ENTRY_ERROR, current, source_root, target_root)
            record["error"] = str(e)
            yield record
            continue

        subdirs: List[str] = []
        for child in children:
            if _is_dir(child):
                if is_target_path(child.path, source_root, target_root):
                    continue
                subdirs.append(child.path)
            else:
                yield _entry(ENTRY_FILE, child.path, source_root, target_root)

        # Reversed so that pop() visits them in name order
        worklist.extend(reversed(subdirs))


def list_source_files(source_root: str, target_root: str, start: Optional[str] = None) -> List[str]:
    """Return the absolute paths of every file of the (sub)tree."""
    return [
        entry["path"]
        for entry in yield_source_entries(source_root, target_root, start)
        if entry["type"] == ENTRY_FILE
    ]


def is_source_path(path: str, source_root: str, target_root: str) -> bool:
    """True when 'path' is inside the source tree and outside the target tree."""
    if not is_within(path, source_root):
        return False
    return not is_target_path(path, source_root, target_root)


def is_target_path(path: str, source_root: str, target_root: str) -> bool:
    """
    True when 'path' belongs to the output tree and must not be read as input.

    A target nested in the source is pruned from it. A target that contains
    the source (e.g. source 'proj/src', target 'proj') does not shadow it:
    only target paths outside the source count.
    """
    if not is_within(path, target_root):
        return False
    if is_within(path, source_root):
        return is_within(target_root, source_root)
    return True


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _entry(kind: str, path: str, source_root: str, target_root: str) -> Dict[str, str]:
    return {
        "type": kind,
        "path": path,
        "rel_path": os.path.relpath(path, source_root),
        "target_path": map_to_target(path, source_root, target_root),
    }


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


