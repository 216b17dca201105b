from __future__ import annotations

"""
Render Domain Data Models.

Defines the value objects exchanged between the classifier, the include
resolver, the tree renderer and the watch coordinator, plus the report
returned to the interface layer after each render pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from simple_include.domain.render_errors import RenderError

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

class FileKind(str, Enum):
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class ClassifiedFile:
    """
    Tagged classification result: Text(bytes) or Binary(bytes).

    Attributes:
        kind: The detected content family.
        content: Raw file bytes, untouched.
    """
    kind: FileKind
    content: bytes

    @property
    def is_text(self) -> bool:
        return self.kind is FileKind.TEXT


@dataclass(frozen=True)
class ResolvedContent:
    """
    Fully expanded output of a text file.

    Attributes:
        content: Output bytes with every directive substituted.
        includes: Absolute paths of every file pulled in, transitively.
    """
    content: bytes
    includes: FrozenSet[str] = frozenset()

# -----------------------------------------------------------------------------
# RENDER REPORTING
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FileOutcome:
    """
    Result of rendering one source entry.

    Attributes:
        input_path: Absolute source path.
        output_path: Absolute mapped target path.
        kind: Content family, or None when classification never happened.
        error: The file-scoped failure, if any.
        includes: Files referenced (transitively) during the render.
    """
    input_path: str
    output_path: str
    kind: Optional[FileKind] = None
    error: Optional[RenderError] = None
    includes: FrozenSet[str] = frozenset()

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_path": self.input_path,
            "output_path": self.output_path,
            "kind": self.kind.value if self.kind else None,
            "ok": self.ok,
            "error": str(self.error) if self.error else None,
            "error_kind": self.error.kind.value if self.error else None,
            "includes": sorted(self.includes),
        }


@dataclass
class RenderReport:
    """
    Aggregated outcomes of one render pass (full tree or watch cycle).

    Outcomes keep the order in which the source entries were discovered.
    """
    outcomes: List[FileOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.cancelled and all(o.ok for o in self.outcomes)

    @property
    def failures(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def counters(self) -> Dict[str, int]:
        rendered = sum(1 for o in self.outcomes if o.ok and o.kind is FileKind.TEXT)
        copied = sum(1 for o in self.outcomes if o.ok and o.kind is FileKind.BINARY)
        return {
            "rendered": rendered,
            "copied": copied,
            "failed": len(self.failures),
        }

    def extend(self, other: "RenderReport") -> None:
        self.outcomes.extend(other.outcomes)
        self.cancelled = self.cancelled or other.cancelled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "cancelled": self.cancelled,
            "counters": self.counters,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }

# -----------------------------------------------------------------------------
# WATCH EVENTS
# -----------------------------------------------------------------------------

class ChangeKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    MOVED = "moved"


@dataclass(frozen=True)
class ChangeEvent:
    """
    Raw filesystem change pushed into the watch channel.

    Attributes:
        kind: Type of change observed.
        path: Absolute path of the affected entry (source side for moves).
        dest_path: Destination of a move, empty otherwise.
        is_directory: Whether the entry is a directory.
    """
    kind: ChangeKind
    path: str
    dest_path: str = ""
    is_directory: bool = False
