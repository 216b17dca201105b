from __future__ import annotations

"""
Atomic Render Worker.

Processes a single source file: classify it, expand its includes (text) or
keep its bytes (binary), and persist the result at the mirrored target path.
Designed to run inside a ThreadPoolExecutor; every file-scoped failure is
returned as part of the FileOutcome instead of being raised.
"""

import logging
import os
import stat
from typing import Optional

from simple_include.core.pipeline.components.classifier import read_and_classify
from simple_include.core.pipeline.components.resolver import IncludeResolver
from simple_include.core.pipeline.components.writer import write_output
from simple_include.domain.render_errors import RenderError
from simple_include.domain.render_models import FileKind, FileOutcome

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_file(
        source_path: str,
        target_path: str,
        resolver: IncludeResolver,
        max_scan_bytes: Optional[int] = None,
) -> FileOutcome:
    """
    Execute the full render lifecycle for one file.

    Nothing is written when classification or include expansion fails, so a
    previous good output (if any) stays in place.

    Args:
        source_path: Absolute path of the source file.
        target_path: Absolute mirrored output path.
        resolver: Shared include resolver.
        max_scan_bytes: Classification scan bound (None scans everything).

    Returns:
        FileOutcome: Input/output paths, detected kind, includes and error.
    """
    kind: Optional[FileKind] = None
    try:
        # 1. Classification Phase
        classified = read_and_classify(source_path, max_scan_bytes)
        kind = classified.kind

        # 2. Expansion Phase
        if classified.is_text:
            resolved = resolver.resolve(source_path, classified.content)
            output, includes = resolved.content, resolved.includes
        else:
            output, includes = classified.content, frozenset()

        # 3. Persistence Phase
        write_output(target_path, output, _source_mode(source_path))

    except RenderError as e:
        logger.error(f"Render failed for {source_path}: {e}")
        return FileOutcome(
            input_path=source_path,
            output_path=target_path,
            kind=kind,
            error=e,
            includes=e.includes,
        )

    logger.debug(f"{kind.value.capitalize()} {source_path} -> {target_path}")
    return FileOutcome(
        input_path=source_path,
        output_path=target_path,
        kind=kind,
        includes=includes,
    )


def _source_mode(path: str) -> Optional[int]:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except OSError:
        return None
