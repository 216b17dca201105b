from __future__ import annotations

"""
Watch Mode Coordinator.

Keeps the target tree in sync while the process runs. An event source
pushes raw ChangeEvents into a channel; a single consumer loop drains it,
coalesces bursts into one batch, works out which outputs are stale
(changed files plus every file that included them on its last render) and
re-renders exactly that set.

States: IDLE -> WATCHING -> COLLECTING -> RENDERING -> WATCHING ... -> STOPPED.
"""

import logging
import os
import queue
import threading
from enum import Enum
from typing import Iterator, List, Optional, Protocol, Set

from simple_include.core.pipeline.stages.renderer import render_files, render_tree
from simple_include.core.services.dependency_graph import DependencyGraph
from simple_include.core.services.scanner import (
    is_source_path,
    is_target_path,
    list_source_files,
)
from simple_include.domain.render_models import ChangeEvent, ChangeKind, RenderReport

logger = logging.getLogger(__name__)

# Upper bound on how long the consumer blocks before re-checking for stop()
_POLL_INTERVAL_S = 0.25


class WatchState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    COLLECTING = "collecting"
    RENDERING = "rendering"
    STOPPED = "stopped"


class EventSource(Protocol):
    def start(self, channel: "queue.Queue[Optional[ChangeEvent]]") -> None: ...

    def stop(self) -> None: ...


class WatchCoordinator:
    """
    Incremental re-render loop over a source tree.

    Usage:
        coordinator = WatchCoordinator(src, target, "--include")
        coordinator.start()
        for report in coordinator.reports():
            ...
        # from another thread or a signal handler:
        coordinator.stop()
    """

    def __init__(
            self,
            source_root: str,
            target_root: str,
            include_prefix: str,
            *,
            binary_includes: str = "splice",
            debounce_ms: int = 200,
            max_workers: Optional[int] = None,
            max_scan_bytes: Optional[int] = None,
            event_source: Optional[EventSource] = None,
    ) -> None:
        self.source_root = os.path.abspath(source_root)
        self.target_root = os.path.abspath(target_root)
        self.include_prefix = include_prefix
        self.binary_includes = binary_includes
        self.debounce_s = max(debounce_ms, 0) / 1000.0
        self.max_workers = max_workers
        self.max_scan_bytes = max_scan_bytes

        if event_source is None:
            from simple_include.infra.watch import WatchdogEventSource
            event_source = WatchdogEventSource(self.source_root)
        self.event_source = event_source

        self.graph = DependencyGraph()
        self.state = WatchState.IDLE
        self._channel: "queue.Queue[Optional[ChangeEvent]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._cycle_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------------------------------

    def start(self, initial_render: bool = True) -> Optional[RenderReport]:
        """
        Subscribe to filesystem events and optionally render the whole tree.

        The subscription comes first so that edits made during the initial
        render are queued for the first cycle rather than lost.

        Returns:
            Optional[RenderReport]: The initial full render, if requested.
        """
        if self.state is not WatchState.IDLE:
            raise RuntimeError(f"Cannot start a coordinator in state '{self.state.value}'")

        self.event_source.start(self._channel)
        self.state = WatchState.WATCHING

        if not initial_render:
            return None

        with self._cycle_lock:
            return render_tree(
                self.source_root,
                self.target_root,
                self.include_prefix,
                binary_includes=self.binary_includes,
                max_workers=self.max_workers,
                max_scan_bytes=self.max_scan_bytes,
                cancellation_event=self._stop_event,
                graph=self.graph,
            )

    def stop(self) -> None:
        """Release the subscription and end reports(). Safe to call twice."""
        if self.state is WatchState.STOPPED:
            return
        self._stop_event.set()
        self.event_source.stop()
        # Wake a consumer blocked on the channel
        self._channel.put(None)
        self.state = WatchState.STOPPED
        logger.info("Watch stopped.")

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def __enter__(self) -> "WatchCoordinator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -------------------------------------------------------------------------
    # EVENT STREAM
    # -------------------------------------------------------------------------

    def submit(self, event: ChangeEvent) -> None:
        """Push an event into the channel (used by custom event sources)."""
        self._channel.put(event)

    def reports(self) -> Iterator[RenderReport]:
        """
        Yield one RenderReport per re-render cycle until stop() is called.

        Events that arrive while a cycle is rendering stay in the channel and
        are merged into the next batch.
        """
        while not self.stopped:
            batch = self._collect_batch()
            if not batch:
                continue
            report = self.process_batch(batch)
            if self.stopped:
                return
            yield report

    def process_batch(self, events: List[ChangeEvent]) -> RenderReport:
        """Run one collect -> re-render cycle for an explicit list of events."""
        with self._cycle_lock:
            self._set_state(WatchState.RENDERING)
            try:
                affected = self.affected_files(events)
                logger.info(f"{len(events)} change(s) detected, re-rendering {len(affected)} file(s)")
                return render_files(
                    affected,
                    self.source_root,
                    self.target_root,
                    self.include_prefix,
                    binary_includes=self.binary_includes,
                    max_workers=self.max_workers,
                    max_scan_bytes=self.max_scan_bytes,
                    cancellation_event=self._stop_event,
                    graph=self.graph,
                )
            finally:
                self._set_state(WatchState.WATCHING)

    def affected_files(self, events: List[ChangeEvent]) -> Set[str]:
        """
        Compute the minimal render set for a batch and prune removed sources
        from the dependency graph.
        """
        affected: Set[str] = set()

        for event in events:
            if event.kind is ChangeKind.MOVED:
                self._on_removed(event.path, event.is_directory, affected)
                self._on_changed(event.dest_path, event.is_directory, affected)
            elif event.kind is ChangeKind.REMOVED:
                self._on_removed(event.path, event.is_directory, affected)
            else:
                self._on_changed(event.path, event.is_directory, affected)

        # A file created then deleted inside one batch has nothing to render
        for path in [p for p in affected if not os.path.isfile(p)]:
            affected.discard(path)
            self.graph.forget(path)

        return affected

    # -------------------------------------------------------------------------
    # PRIVATE HELPERS
    # -------------------------------------------------------------------------

    def _collect_batch(self) -> List[ChangeEvent]:
        self._set_state(WatchState.WATCHING)
        first = self._next_event(_POLL_INTERVAL_S)
        if first is None:
            return []

        self._set_state(WatchState.COLLECTING)
        batch = [first]
        while not self.stopped:
            event = self._next_event(self.debounce_s)
            if event is None:
                break
            batch.append(event)
        return batch

    def _set_state(self, state: WatchState) -> None:
        if not self.stopped:
            self.state = state

    def _next_event(self, timeout: float) -> Optional[ChangeEvent]:
        try:
            return self._channel.get(timeout=timeout) if timeout > 0 else self._channel.get_nowait()
        except queue.Empty:
            return None

    def _on_changed(self, path: str, is_directory: bool, affected: Set[str]) -> None:
        path = os.path.abspath(path)
        # Our own output never triggers a render
        if is_target_path(path, self.source_root, self.target_root):
            return

        if is_source_path(path, self.source_root, self.target_root):
            if is_directory:
                if os.path.isdir(path):
                    affected.update(list_source_files(self.source_root, self.target_root, start=path))
            elif os.path.isfile(path):
                affected.add(path)

        affected.update(self.graph.dependents_of(path))

    def _on_removed(self, path: str, is_directory: bool, affected: Set[str]) -> None:
        path = os.path.abspath(path)
        if is_target_path(path, self.source_root, self.target_root):
            return

        if is_directory:
            self.graph.forget_under(path)
        else:
            self.graph.forget(path)
        # Includers must now fail loudly with IncludeNotFound
        affected.update(self.graph.dependents_of(path))
