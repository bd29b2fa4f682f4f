"""
Exception hierarchy and warning records for ensodag.

Structural or index misuse raises. Data problems that must not stop the
visualisation (count mismatches, unbindable shapes) are recorded as issue
objects and logged instead.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar, Dict


class EnsoDagError(Exception):
    """Base class for all ensodag errors."""


class HierarchyIndexError(EnsoDagError, IndexError):
    """A level, local index or global id lies outside the capacity table."""


class DatasetFormatError(EnsoDagError, ValueError):
    """The dataset JSON does not have the expected top-level layout."""


class SVGParseError(EnsoDagError, ValueError):
    """The rendered image could not be parsed as SVG."""


class GraphCycleError(EnsoDagError):
    """Raised by a strict analyzer when the edge set is not acyclic."""

    def __init__(self, ordered: int, total: int):
        self.ordered = ordered
        self.total = total
        super().__init__(
            f"Topological sort ordered {ordered} of {total} nodes; the edge set contains a cycle"
        )


class DatasetNotLoadedError(EnsoDagError):
    """A query was issued against a context with no dataset."""


class IssueKind(StrEnum):
    """Categories of non-fatal problems."""
    GRAPH_CONSISTENCY = "graph_consistency"
    SPATIAL_BINDING = "spatial_binding"
    MALFORMED_RECORD = "malformed_record"


@dataclass
class ConsistencyIssue:
    """A logged, non-fatal problem found while parsing, building or binding."""

    kind: ClassVar[IssueKind] = IssueKind.MALFORMED_RECORD

    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"


@dataclass
class GraphConsistencyWarning(ConsistencyIssue):
    """Node/link counts disagree with the capacity table, or an edge skips levels."""

    kind: ClassVar[IssueKind] = IssueKind.GRAPH_CONSISTENCY


@dataclass
class SpatialBindingWarning(ConsistencyIssue):
    """A shape could not be matched, or matched but failed the hierarchy check."""

    kind: ClassVar[IssueKind] = IssueKind.SPATIAL_BINDING
