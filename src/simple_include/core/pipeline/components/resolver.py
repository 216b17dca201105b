from __future__ import annotations

"""
Include Directive Resolution.

Expands every line of the form '<prefix> <path>' into the content of the
referenced file. Relative paths are resolved against the directory of the
file that contains the directive, absolute paths are used verbatim, and
paths outside the source tree are honored. Text includes are expanded
recursively; binary includes are spliced raw or rejected depending on the
configured policy.

Content is handled as bytes end to end so that line terminators (LF or
CRLF) and any non-UTF-8 payload pass through untouched.
"""

import io
import logging
import os
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

from simple_include.core.pipeline.components.classifier import classify
from simple_include.domain.config import BINARY_INCLUDE_POLICIES
from simple_include.domain.render_errors import (
    BinaryIncludeRejectedError,
    IncludeCycleError,
    IncludeNotFoundError,
    IOReadError,
    MalformedDirectiveError,
    RenderError,
)
from simple_include.domain.render_models import ClassifiedFile, ResolvedContent
from simple_include.infra.fs import read_bytes

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """A text file whose lines are being expanded."""
    path: str
    lines: Iterator[bytes]
    line_number: int = 0
    parts: List[bytes] = field(default_factory=list)
    # Terminator of the directive waiting for the frame above to finish
    pending_terminator: bytes = b""

    def splice(self, expanded: bytes, terminator: bytes) -> None:
        self.parts.append(expanded)
        if expanded and terminator and not expanded.endswith(b"\n"):
            self.parts.append(terminator)


@dataclass
class _ResolutionContext:
    """Mutable state of one top-level resolve() call."""
    chain: List[str] = field(default_factory=list)
    # Real paths of 'chain', for O(1) cycle checks
    active: Set[str] = field(default_factory=set)
    includes: Set[str] = field(default_factory=set)

    def enter(self, path: str, content: bytes) -> _Frame:
        self.chain.append(path)
        self.active.add(_identity(path))
        return _Frame(path, iter(io.BytesIO(content)))

    def leave(self) -> None:
        self.active.discard(_identity(self.chain.pop()))


# -----------------------------------------------------------------------------
# RESOLVER
# -----------------------------------------------------------------------------

class IncludeResolver:
    """
    Stateless include expander.

    One instance can be shared by several worker threads: all per-call state
    lives in a _ResolutionContext created by resolve().
    """

    def __init__(
            self,
            include_prefix: str,
            binary_includes: str = "splice",
            max_scan_bytes: Optional[int] = None,
    ) -> None:
        if not include_prefix:
            raise ValueError("include_prefix must not be empty")
        if binary_includes not in BINARY_INCLUDE_POLICIES:
            raise ValueError(
                f"binary_includes must be one of {BINARY_INCLUDE_POLICIES}, "
                f"got '{binary_includes}'"
            )
        self.include_prefix = include_prefix
        self.binary_includes = binary_includes
        self.max_scan_bytes = max_scan_bytes
        self._prefix_bytes = include_prefix.encode("utf-8")

    def resolve(self, file_path: str, content: bytes) -> ResolvedContent:
        """
        Expand all include directives of a text file.

        Args:
            file_path: Path of the file being processed (anchors relative includes).
            content: Raw bytes of that file.

        Returns:
            ResolvedContent: Expanded bytes plus every file pulled in.

        Raises:
            RenderError: IncludeNotFound, IncludeCycle, MalformedDirective,
                         BinaryIncludeRejected or IOReadError. The error's
                         'includes' holds the paths gathered before failing.
        """
        ctx = _ResolutionContext()
        try:
            expanded = self._expand(_normalize(file_path), content, ctx)
        except RenderError as e:
            raise e.with_includes(ctx.includes)
        return ResolvedContent(expanded, frozenset(ctx.includes))

    # -------------------------------------------------------------------------
    # PRIVATE HELPERS
    # -------------------------------------------------------------------------

    def _expand(self, path: str, content: bytes, ctx: _ResolutionContext) -> bytes:
        """
        Expand a text file depth-first with an explicit stack of frames.

        Include depth is only bounded by memory, never by the interpreter
        recursion limit.
        """
        stack: List[_Frame] = [ctx.enter(path, content)]

        while True:
            frame = stack[-1]
            line = next(frame.lines, None)

            if line is None:
                stack.pop()
                ctx.leave()
                expanded = b"".join(frame.parts)
                if not stack:
                    return expanded
                parent = stack[-1]
                parent.splice(expanded, parent.pending_terminator)
                continue

            frame.line_number += 1
            body, terminator = _split_terminator(line)
            target = self._parse_directive(body, frame.path, frame.line_number)
            if target is None:
                frame.parts.append(line)
                continue

            # os.path.join keeps 'target' as-is when it is absolute
            include_path = _normalize(os.path.join(os.path.dirname(frame.path), target))
            ctx.includes.add(include_path)

            if _identity(include_path) in ctx.active:
                raise IncludeCycleError(include_path, ctx.chain)

            included = self._read_include(include_path, frame.path)
            if included.is_text:
                frame.pending_terminator = terminator
                stack.append(ctx.enter(include_path, included.content))
                continue

            if self.binary_includes == "reject":
                raise BinaryIncludeRejectedError(include_path, frame.path)

            logger.debug(f"Splicing binary include '{include_path}' into '{frame.path}'")
            frame.splice(included.content, terminator)

    def _parse_directive(self, body: bytes, path: str, line_number: int) -> Optional[str]:
        """Return the referenced path, or None if the line is not a directive."""
        if not body.startswith(self._prefix_bytes):
            return None

        rest = body[len(self._prefix_bytes):]
        # '--includes foo' shares the prefix but is not a directive
        if rest and not rest[:1].isspace():
            return None

        target = rest.strip()
        if not target:
            raise MalformedDirectiveError(path, line_number, self.include_prefix)
        return os.fsdecode(target)

    def _read_include(self, include_path: str, referenced_by: str) -> ClassifiedFile:
        try:
            content = read_bytes(include_path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise IncludeNotFoundError(include_path, referenced_by) from e
        except (OSError, ValueError) as e:
            raise IOReadError(include_path, e) from e
        return classify(content, self.max_scan_bytes)


# -----------------------------------------------------------------------------
# FUNCTIONAL FACADE
# -----------------------------------------------------------------------------

def resolve_includes(
        file_path: str,
        content: bytes,
        include_prefix: str,
        *,
        binary_includes: str = "splice",
        max_scan_bytes: Optional[int] = None,
) -> ResolvedContent:
    """Expand the includes of a single file with a throwaway resolver."""
    resolver = IncludeResolver(include_prefix, binary_includes, max_scan_bytes)
    return resolver.resolve(file_path, content)


def _split_terminator(line: bytes) -> Tuple[bytes, bytes]:
    if line.endswith(b"\r\n"):
        return line[:-2], b"\r\n"
    if line.endswith(b"\n"):
        return line[:-1], b"\n"
    return line, b""


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def _identity(path: str) -> str:
    # Symlinks must not hide a cycle
    return os.path.realpath(path)
