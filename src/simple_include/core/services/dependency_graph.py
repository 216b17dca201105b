from __future__ import annotations

"""
Include Dependency Graph.

In-memory relation 'source file -> files it transitively included during its
most recent render'. Only the render path writes to it; the watch loop reads
it to find which outputs a change invalidates. A single lock keeps readers
from observing a half-applied update.
"""

import os
import threading
from typing import Dict, FrozenSet, Iterable, Set


class DependencyGraph:
    """Thread-safe include relation keyed by normalized absolute paths."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._includes: Dict[str, FrozenSet[str]] = {}

    def update(self, source: str, includes: Iterable[str]) -> None:
        """Replace the include set recorded for 'source'."""
        key = _key(source)
        with self._lock:
            self._includes[key] = frozenset(_key(p) for p in includes)

    def forget(self, source: str) -> None:
        """Drop every edge originating from 'source'."""
        with self._lock:
            self._includes.pop(_key(source), None)

    def forget_under(self, directory: str) -> None:
        """Drop every source located inside 'directory' (directory removals)."""
        prefix = _key(directory) + os.sep
        with self._lock:
            for key in [k for k in self._includes if k.startswith(prefix)]:
                del self._includes[key]

    def includes_of(self, source: str) -> FrozenSet[str]:
        with self._lock:
            return self._includes.get(_key(source), frozenset())

    def dependents_of(self, path: str) -> Set[str]:
        """
        Return every source whose last render (transitively) read 'path'.

        A directory path matches any include located below it, which covers
        directory removals and moves.
        """
        key = _key(path)
        prefix = key + os.sep
        with self._lock:
            return {
                source
                for source, includes in self._includes.items()
                if source != key
                and any(inc == key or inc.startswith(prefix) for inc in includes)
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._includes)


def _key(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))
