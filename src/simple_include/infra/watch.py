from __future__ import annotations

"""
Filesystem Event Source (watchdog adapter).

Translates watchdog observer callbacks into ChangeEvent values pushed onto a
queue. The observer runs on its own thread; the queue is the only thing it
shares with the consumer, so no application callback ever runs on the
observer thread.
"""

import logging
import os
import queue
from typing import Optional

from watchdog.events import (
    DirModifiedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from simple_include.domain.render_models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

# Seconds to wait for the observer thread to exit on stop()
_JOIN_TIMEOUT = 5.0


class ChannelEventHandler(FileSystemEventHandler):
    """Watchdog handler that forwards every relevant event into a channel."""

    def __init__(self, channel: "queue.Queue[Optional[ChangeEvent]]") -> None:
        super().__init__()
        self.channel = channel

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(ChangeKind.CREATED, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        # A directory's mtime changes with every child write: pure noise
        if isinstance(event, DirModifiedEvent):
            return
        self._push(ChangeKind.MODIFIED, event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._push(ChangeKind.REMOVED, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._push(ChangeKind.MOVED, event, dest=os.fsdecode(event.dest_path))

    def _push(self, kind: ChangeKind, event: FileSystemEvent, dest: str = "") -> None:
        change = ChangeEvent(
            kind=kind,
            path=os.fsdecode(event.src_path),
            dest_path=dest,
            is_directory=event.is_directory,
        )
        logger.debug(f"Filesystem event: {change.kind.value} {change.path}")
        self.channel.put(change)


class WatchdogEventSource:
    """
    Recursive watchdog subscription on a directory.

    Lifecycle: start(channel) schedules an Observer; stop() unschedules it
    and joins its thread. Both are idempotent.
    """

    def __init__(self, path: str, recursive: bool = True) -> None:
        self.path = os.path.abspath(path)
        self.recursive = recursive
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self, channel: "queue.Queue[Optional[ChangeEvent]]") -> None:
        if self._observer is not None:
            logger.warning(f"Event source already running for {self.path}")
            return

        observer = Observer()
        observer.schedule(ChannelEventHandler(channel), self.path, recursive=self.recursive)
        observer.start()
        self._observer = observer
        logger.info(f"Watching for changes in {self.path}")

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=_JOIN_TIMEOUT)
        logger.info(f"Stopped watching {self.path}")
