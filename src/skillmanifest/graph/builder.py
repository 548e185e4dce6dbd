"""Graph builder: global join of all parsed units into an id-indexed graph."""

from __future__ import annotations

import logging

from skillmanifest.graph.models import ConflictPair, Edge, EdgeOrigin, UnitGraph
from skillmanifest.report import FindingCode, Report
from skillmanifest.units.models import Unit
from skillmanifest.units.references import inferred_dependencies

logger = logging.getLogger(__name__)


def build_graph(units: list[Unit], report: Report) -> UnitGraph:
    """Index units by id and collect dependency edges and conflict pairs.

    Units are taken in the given order; a later unit reusing an id gets a
    SchemaError and is left out of the graph. Edges to unknown ids are kept
    for the validator.
    """
    units_by_id: dict[str, Unit] = {}
    for unit in units:
        first = units_by_id.get(unit.id)
        if first is not None:
            report.error(
                FindingCode.SCHEMA_ERROR,
                unit.id,
                unit.source_path,
                f'Duplicate id "{unit.id}": already defined by {first.source_path}',
            )
            continue
        units_by_id[unit.id] = unit

    edges_by_key: dict[tuple[str, str], Edge] = {}

    def _add(source: str, target: str, origin: EdgeOrigin, line: int | None = None) -> None:
        edge = edges_by_key.get((source, target))
        if edge is None:
            edges_by_key[(source, target)] = Edge(
                source=source, target=target, origins={origin}, line=line
            )
            return
        edge.origins.add(origin)
        if edge.line is None:
            edge.line = line

    for unit in units_by_id.values():
        for dep in unit.declared_dependencies:
            _add(unit.id, dep, EdgeOrigin.DECLARED)
        inferred = inferred_dependencies(unit.referenced_ids, unit.declared_dependencies, unit.id)
        for dep in inferred:
            _add(unit.id, dep, EdgeOrigin.INFERRED, unit.reference_line(dep))

    edges = sorted(edges_by_key.values(), key=lambda e: e.key)

    adjacency: dict[str, list[str]] = {unit_id: [] for unit_id in sorted(units_by_id)}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)

    graph = UnitGraph(
        units_by_id=units_by_id,
        edges=edges,
        adjacency=adjacency,
        conflict_pairs=_conflict_pairs(units_by_id),
    )
    logger.debug(
        f"Built graph: {len(units_by_id)} units, {len(edges)} edges, "
        f"{len(graph.conflict_pairs)} conflict pairs"
    )
    return graph


def _conflict_pairs(units_by_id: dict[str, Unit]) -> list[ConflictPair]:
    pairs: dict[tuple[str, str], ConflictPair] = {}
    for unit in units_by_id.values():
        for other_id in unit.declared_conflicts:
            a, b = sorted((unit.id, other_id))
            if (a, b) in pairs:
                continue
            ua, ub = units_by_id.get(a), units_by_id.get(b)
            symmetric = (
                ua is not None
                and ub is not None
                and b in ua.declared_conflicts
                and a in ub.declared_conflicts
            )
            pairs[(a, b)] = ConflictPair(a=a, b=b, symmetric=symmetric)
    return [pairs[key] for key in sorted(pairs)]
