"""Models for the unit graph: edges, conflict pairs, and the id-indexed arena."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, Field

from skillmanifest.units.models import Unit


class EdgeOrigin(StrEnum):
    DECLARED = "declared"
    INFERRED = "inferred"


class Edge(BaseModel):
    """Directed dependency source -> target. Target may be dangling."""

    source: str
    target: str
    origins: set[EdgeOrigin] = Field(default_factory=set)
    line: int | None = None  # first reference line, for inferred edges

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)


class ConflictPair(BaseModel):
    """Unordered conflict relation, stored with a < b."""

    a: str
    b: str
    symmetric: bool


@dataclass
class UnitGraph:
    units_by_id: dict[str, Unit] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    adjacency: dict[str, list[str]] = field(default_factory=dict)
    conflict_pairs: list[ConflictPair] = field(default_factory=list)

    def edges_from(self, unit_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source == unit_id]

    def dangling_edges(self) -> list[Edge]:
        return [e for e in self.edges if e.target not in self.units_by_id]


class ConflictFindingType(StrEnum):
    MISSING_CONFLICT_TARGET = "missing_conflict_target"
    ASYMMETRIC_CONFLICT = "asymmetric_conflict"


class ConflictFinding(BaseModel):
    unit: str
    target: str
    type: ConflictFindingType
    message: str


@dataclass
class GraphCheckResult:
    cycles: list[list[str]] = field(default_factory=list)
    conflicts: list[ConflictFinding] = field(default_factory=list)
