from __future__ import annotations

"""
Parallel Tree Renderer.

Mirrors the source tree into the target tree. Directories are recreated
in walk order and files are dispatched to a thread pool, each one rendered
independently by the worker stage. Failures are file-scoped: they are
collected into the RenderReport and the pass carries on.
"""

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Tuple

from simple_include.core.pipeline.components.resolver import IncludeResolver
from simple_include.core.pipeline.components.writer import mirror_directory
from simple_include.core.pipeline.stages.worker import render_file
from simple_include.core.services.dependency_graph import DependencyGraph
from simple_include.core.services.scanner import (
    ENTRY_DIR,
    ENTRY_ERROR,
    ENTRY_FILE,
    is_source_path,
    yield_source_entries,
)
from simple_include.domain.render_errors import IOReadError, RenderError
from simple_include.domain.render_models import FileOutcome, RenderReport
from simple_include.infra.fs import map_to_target

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def render_tree(
        source_root: str,
        target_root: str,
        include_prefix: str,
        *,
        binary_includes: str = "splice",
        max_workers: Optional[int] = None,
        max_scan_bytes: Optional[int] = None,
        cancellation_event: Optional[threading.Event] = None,
        graph: Optional[DependencyGraph] = None,
) -> RenderReport:
    """
    Render every file of the source tree into the target tree.

    Target entries without a source counterpart are never removed.

    Args:
        source_root: Directory to mirror.
        target_root: Output directory (created if needed).
        include_prefix: Directive prefix, e.g. '--include'.
        binary_includes: 'splice' raw bytes of binary includes, or 'reject' them.
        max_workers: Thread pool size (None lets the executor decide).
        max_scan_bytes: Classification scan bound (None scans everything).
        cancellation_event: When set, no further files are dispatched.
        graph: Optional dependency graph refreshed with every file's includes.

    Returns:
        RenderReport: One outcome per directory failure and per file.

    Raises:
        NotADirectoryError: If 'source_root' is not a directory.
        ValueError: If source and target are the same directory.
    """
    source_root, target_root = _check_roots(source_root, target_root)
    resolver = IncludeResolver(include_prefix, binary_includes, max_scan_bytes)

    logger.info(f"Rendering '{source_root}' into '{target_root}'")

    report = RenderReport()
    jobs: List[Tuple[str, str]] = []

    # 1. Directory mirroring and file discovery
    for entry in yield_source_entries(source_root, target_root):
        if entry["type"] == ENTRY_DIR:
            outcome = _mirror(entry["path"], entry["target_path"])
            if outcome:
                report.outcomes.append(outcome)
        elif entry["type"] == ENTRY_ERROR:
            error = IOReadError(entry["path"], OSError(entry["error"]))
            report.outcomes.append(FileOutcome(entry["path"], entry["target_path"], error=error))
        elif entry["type"] == ENTRY_FILE:
            jobs.append((entry["path"], entry["target_path"]))

    # 2. Parallel rendering
    report.extend(_dispatch(jobs, resolver, max_workers, max_scan_bytes, cancellation_event, graph))

    counters = report.counters
    logger.info(
        f"Render finalized. Rendered: {counters['rendered']}, "
        f"Copied: {counters['copied']}, Failed: {counters['failed']}"
    )
    return report


def render_files(
        paths: Iterable[str],
        source_root: str,
        target_root: str,
        include_prefix: str,
        *,
        binary_includes: str = "splice",
        max_workers: Optional[int] = None,
        max_scan_bytes: Optional[int] = None,
        cancellation_event: Optional[threading.Event] = None,
        graph: Optional[DependencyGraph] = None,
) -> RenderReport:
    """
    Render an explicit set of source files (watch mode re-render cycles).

    Paths outside the source tree are ignored. Outcomes follow sorted path
    order so that reports are reproducible.
    """
    source_root, target_root = _check_roots(source_root, target_root)
    resolver = IncludeResolver(include_prefix, binary_includes, max_scan_bytes)

    jobs: List[Tuple[str, str]] = []
    for path in sorted({os.path.abspath(p) for p in paths}):
        if not is_source_path(path, source_root, target_root):
            logger.debug(f"Ignoring path outside the source tree: {path}")
            continue
        jobs.append((path, map_to_target(path, source_root, target_root)))

    return _dispatch(jobs, resolver, max_workers, max_scan_bytes, cancellation_event, graph)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _check_roots(source_root: str, target_root: str) -> Tuple[str, str]:
    source_root = os.path.abspath(source_root)
    target_root = os.path.abspath(target_root)

    if not os.path.isdir(source_root):
        raise NotADirectoryError(f"Source directory does not exist: '{source_root}'")
    if os.path.normpath(source_root) == os.path.normpath(target_root):
        raise ValueError("Source and target directories must differ")

    return source_root, target_root


def _mirror(source_dir: str, target_dir: str) -> Optional[FileOutcome]:
    try:
        mirror_directory(target_dir)
    except RenderError as e:
        logger.error(f"Cannot mirror directory {source_dir}: {e}")
        return FileOutcome(source_dir, target_dir, error=e)
    return None


def _dispatch(
        jobs: List[Tuple[str, str]],
        resolver: IncludeResolver,
        max_workers: Optional[int],
        max_scan_bytes: Optional[int],
        cancellation_event: Optional[threading.Event],
        graph: Optional[DependencyGraph],
) -> RenderReport:
    """Submit render jobs, refresh the graph as they finish, keep job order."""
    report = RenderReport()
    futures: Dict[Future, int] = {}
    outcomes: Dict[int, FileOutcome] = {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="RenderWorker") as executor:
        for index, (source_path, target_path) in enumerate(jobs):
            if cancellation_event and cancellation_event.is_set():
                report.cancelled = True
                break
            future = executor.submit(render_file, source_path, target_path, resolver, max_scan_bytes)
            futures[future] = index

        for future in as_completed(futures):
            outcome = future.result()
            outcomes[futures[future]] = outcome
            # Single writer: only this collecting thread touches the graph
            if graph is not None:
                graph.update(outcome.input_path, outcome.includes)

    report.outcomes.extend(outcomes[i] for i in sorted(outcomes))
    if report.cancelled:
        logger.warning("Render aborted by cancellation signal.")
    return report
