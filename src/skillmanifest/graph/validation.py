"""Graph validator: dangling references, dependency cycles, conflict symmetry.

All checks run over the complete graph; nothing here is meaningful on a
partial set of units.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from skillmanifest.graph.models import (
    ConflictFinding,
    ConflictFindingType,
    EdgeOrigin,
    GraphCheckResult,
    UnitGraph,
)
from skillmanifest.report import FindingCode, Report
from skillmanifest.units.models import UnitKind

logger = logging.getLogger(__name__)


def validate_graph(graph: UnitGraph, report: Report) -> GraphCheckResult:
    find_dangling_references(graph, report)
    check_reference_kinds(graph, report)
    cycles = detect_cycles(graph.adjacency)
    for cycle in cycles:
        head = graph.units_by_id[cycle[0]]
        report.error(
            FindingCode.CYCLE_ERROR,
            head.id,
            head.source_path,
            f"Circular dependency: {' -> '.join(cycle)}",
        )
    conflicts = check_conflicts(graph, report)
    logger.debug(f"Graph checks: {len(cycles)} cycles, {len(conflicts)} conflict findings")
    return GraphCheckResult(cycles=cycles, conflicts=conflicts)


def find_dangling_references(graph: UnitGraph, report: Report) -> None:
    for edge in graph.dangling_edges():
        source = graph.units_by_id[edge.source]
        if EdgeOrigin.DECLARED in edge.origins:
            message = f'"{edge.source}" depends on "{edge.target}", which does not exist'
            line = None
        else:
            message = f'"{edge.source}" references "{edge.target}", which does not exist'
            line = edge.line
        report.error(
            FindingCode.REFERENCE_ERROR,
            edge.source,
            source.source_path,
            message,
            line=line,
        )


def check_reference_kinds(graph: UnitGraph, report: Report) -> None:
    """[subagent:x] must point at a subagent; [skill:x] may point at any unit."""
    for unit in graph.units_by_id.values():
        for ref in unit.references:
            if ref.kind != UnitKind.SUBAGENT:
                continue
            target = graph.units_by_id.get(ref.target)
            if target is None or target.kind == UnitKind.SUBAGENT:
                continue
            report.error(
                FindingCode.REFERENCE_ERROR,
                unit.id,
                unit.source_path,
                f'[subagent:{ref.target}] points at a {target.kind}, not a subagent',
                line=ref.line,
            )


def detect_cycles(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """Find dependency cycles with an iterative visited/on-stack DFS.

    Each cycle is closed and listed in discovery order, from the node the
    walk re-entered, e.g. ["a", "b", "a"]. Cycles that are rotations of one
    another are reported once. Targets missing from adjacency are dangling and not followed.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    for root in sorted(adjacency):
        if root in visited:
            continue
        path: list[str] = [root]
        frames: list[Iterator[str]] = [iter(sorted(adjacency[root]))]
        visited.add(root)
        on_stack.add(root)

        while frames:
            nxt = next(frames[-1], None)
            if nxt is None:
                frames.pop()
                on_stack.discard(path.pop())
                continue
            if nxt not in adjacency:
                continue
            if nxt in on_stack:
                cycle = path[path.index(nxt) :] + [nxt]
                key = canonical_cycle(cycle)
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle)
                continue
            if nxt in visited:
                continue
            visited.add(nxt)
            on_stack.add(nxt)
            path.append(nxt)
            frames.append(iter(sorted(adjacency[nxt])))

    return cycles


def canonical_cycle(cycle: list[str]) -> tuple[str, ...]:
    """Rotation-independent key for a closed cycle like [a, b, a]."""
    nodes = cycle[:-1] if len(cycle) > 1 and cycle[0] == cycle[-1] else list(cycle)
    start = nodes.index(min(nodes))
    return tuple(nodes[start:] + nodes[:start])


def check_conflicts(graph: UnitGraph, report: Report) -> list[ConflictFinding]:
    """Every declared conflict must point at an existing unit that declares it back."""
    findings: list[ConflictFinding] = []
    for unit_id in sorted(graph.units_by_id):
        unit = graph.units_by_id[unit_id]
        for other_id in sorted(unit.declared_conflicts):
            other = graph.units_by_id.get(other_id)
            if other is None:
                message = f'"{unit_id}" conflicts with "{other_id}", which does not exist'
                report.error(FindingCode.REFERENCE_ERROR, unit_id, unit.source_path, message)
                findings.append(
                    ConflictFinding(
                        unit=unit_id,
                        target=other_id,
                        type=ConflictFindingType.MISSING_CONFLICT_TARGET,
                        message=message,
                    )
                )
            elif unit_id not in other.declared_conflicts:
                message = f'"{unit_id}" conflicts with "{other_id}" but not vice versa'
                report.warning(
                    FindingCode.ASYMMETRIC_CONFLICT, unit_id, unit.source_path, message
                )
                findings.append(
                    ConflictFinding(
                        unit=unit_id,
                        target=other_id,
                        type=ConflictFindingType.ASYMMETRIC_CONFLICT,
                        message=message,
                    )
                )
    return findings
