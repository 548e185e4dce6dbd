"""Unit graph: construction from declared and inferred relations, global validation."""

from skillmanifest.graph.builder import build_graph
from skillmanifest.graph.models import (
    ConflictFinding,
    ConflictFindingType,
    ConflictPair,
    Edge,
    EdgeOrigin,
    GraphCheckResult,
    UnitGraph,
)
from skillmanifest.graph.validation import (
    check_conflicts,
    detect_cycles,
    find_dangling_references,
    validate_graph,
)

__all__ = [
    "ConflictFinding",
    "ConflictFindingType",
    "ConflictPair",
    "Edge",
    "EdgeOrigin",
    "GraphCheckResult",
    "UnitGraph",
    "build_graph",
    "check_conflicts",
    "detect_cycles",
    "find_dangling_references",
    "validate_graph",
]
