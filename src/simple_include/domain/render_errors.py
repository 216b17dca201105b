from __future__ import annotations

"""
Render Error Taxonomy.

Defines the file-scoped failure kinds raised while classifying, expanding
and persisting a single source file. Every error is caught at the renderer
boundary and recorded in the RenderReport instead of aborting the pass.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Optional, Sequence

# -----------------------------------------------------------------------------
# ERROR KINDS
# -----------------------------------------------------------------------------

class ErrorKind(str, Enum):
    """Stable identifiers for every file-scoped failure."""
    INCLUDE_NOT_FOUND = "IncludeNotFound"
    INCLUDE_CYCLE = "IncludeCycle"
    MALFORMED_DIRECTIVE = "MalformedDirective"
    BINARY_INCLUDE_REJECTED = "BinaryIncludeRejected"
    IO_READ_ERROR = "IOReadError"
    IO_WRITE_ERROR = "IOWriteError"
    CLASSIFY_ERROR = "ClassifyError"

# -----------------------------------------------------------------------------
# EXCEPTION HIERARCHY
# -----------------------------------------------------------------------------

class RenderError(Exception):
    """
    Base class for failures scoped to a single rendered file. Abstract:
    only subclasses that declare a 'kind' can be instantiated.

    Attributes:
        kind: Machine-readable failure identifier.
        path: The path the failure is about.
        includes: Absolute paths referenced before the failure occurred.
                  Kept so that watch mode can re-render the file once the
                  offending include is fixed.
    """
    kind: ErrorKind

    def __init__(self, message: str, path: str = "") -> None:
        if not isinstance(getattr(type(self), "kind", None), ErrorKind):
            raise TypeError(f"{type(self).__name__} does not declare an ErrorKind")
        super().__init__(message)
        self.path = path
        self.includes: FrozenSet[str] = frozenset()

    def with_includes(self, includes: Iterable[str]) -> "RenderError":
        self.includes = frozenset(includes)
        return self


class IncludeNotFoundError(RenderError):
    kind = ErrorKind.INCLUDE_NOT_FOUND

    def __init__(self, path: str, referenced_by: str) -> None:
        super().__init__(
            f"Include file not found: '{path}' (included in '{referenced_by}')", path
        )
        self.referenced_by = referenced_by


class IncludeCycleError(RenderError):
    kind = ErrorKind.INCLUDE_CYCLE

    def __init__(self, path: str, chain: Sequence[str]) -> None:
        cycle = " -> ".join(list(chain) + [path])
        super().__init__(f"Include cycle detected: {cycle}", path)
        self.chain = tuple(chain)


class MalformedDirectiveError(RenderError):
    kind = ErrorKind.MALFORMED_DIRECTIVE

    def __init__(self, path: str, line_number: int, prefix: str) -> None:
        super().__init__(
            f"Include directive without a path in '{path}' at line {line_number} "
            f"(prefix '{prefix}')",
            path,
        )
        self.line_number = line_number


class BinaryIncludeRejectedError(RenderError):
    kind = ErrorKind.BINARY_INCLUDE_REJECTED

    def __init__(self, path: str, referenced_by: str) -> None:
        super().__init__(
            f"Binary data in include file: '{path}' (included in '{referenced_by}')", path
        )
        self.referenced_by = referenced_by


class IOReadError(RenderError):
    kind = ErrorKind.IO_READ_ERROR

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Error reading file '{path}': {cause}", path)


class IOWriteError(RenderError):
    kind = ErrorKind.IO_WRITE_ERROR

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Error writing file '{path}': {cause}", path)


class ClassifyError(RenderError):
    kind = ErrorKind.CLASSIFY_ERROR

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Unable to read '{path}' for classification: {cause}", path)
