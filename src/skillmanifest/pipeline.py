"""Manifest pipeline: load -> parse -> validate -> build graph -> validate graph -> emit."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import TypeVar

from skillmanifest.graph.builder import build_graph
from skillmanifest.graph.models import GraphCheckResult, UnitGraph
from skillmanifest.graph.validation import validate_graph
from skillmanifest.manifest.emitter import build_manifest, write_manifest
from skillmanifest.manifest.models import Manifest
from skillmanifest.report import Report
from skillmanifest.units.frontmatter import parse_unit
from skillmanifest.units.loader import LoaderFatal, discover_units
from skillmanifest.units.models import Unit, UnitFile
from skillmanifest.units.references import with_references
from skillmanifest.units.schema import validate_unit_schema

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class RunState(StrEnum):
    LOADING = "loading"
    PARSING = "parsing"
    VALIDATING = "validating"
    BUILDING_GRAPH = "building_graph"
    VALIDATING_GRAPH = "validating_graph"
    EMITTING = "emitting"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"


@dataclass
class PipelineResult:
    state: RunState
    report: Report
    files_checked: int = 0
    manifest: Manifest | None = None
    graph: UnitGraph | None = None
    checks: GraphCheckResult = field(default_factory=GraphCheckResult)
    output_path: Path | None = None

    def has_fatal_errors(self, strict: bool = True) -> bool:
        return self.report.has_fatal_errors(strict)


def _parse_one(unit_file: UnitFile) -> tuple[Unit | None, Report]:
    report = Report()
    return parse_unit(unit_file, report), report


def _validate_one(unit: Unit) -> Report:
    report = Report()
    validate_unit_schema(unit, report)
    return report


def _map(fn: Callable[[T], R], items: Iterable[T], jobs: int) -> list[R]:
    """Apply fn to each item, in order. With jobs > 1, on a thread pool."""
    items = list(items)
    if jobs <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(fn, items))


def run_pipeline(
    root: Path,
    output: Path | None = None,
    *,
    jobs: int = 1,
    now: datetime | None = None,
    on_state: Callable[[RunState], None] | None = None,
) -> PipelineResult:
    """Run the full pipeline once over the corpus at root.

    Writes the manifest to output when given. Raises LoaderFatal, without
    writing anything, if the corpus root is missing; every other problem is
    reported as a finding and the manifest is still produced.
    """

    def _enter(state: RunState) -> None:
        logger.debug(f"Pipeline state: {state}")
        if on_state is not None:
            on_state(state)

    _enter(RunState.LOADING)
    try:
        unit_files = discover_units(root)
    except LoaderFatal:
        _enter(RunState.ABORTED)
        raise
    logger.info(f"Found {len(unit_files)} unit files under {root}")

    _enter(RunState.PARSING)
    parsed = _map(_parse_one, unit_files, jobs)
    units = [unit for unit, _ in parsed if unit is not None]
    report = Report().merge(*(unit_report for _, unit_report in parsed))

    _enter(RunState.VALIDATING)
    report = report.merge(*_map(_validate_one, units, jobs))
    units = _map(with_references, units, jobs)
    units.sort(key=lambda u: (u.source_path, u.id))

    # Barrier: everything below needs the complete set of parsed units
    _enter(RunState.BUILDING_GRAPH)
    graph = build_graph(units, report)

    _enter(RunState.VALIDATING_GRAPH)
    checks = validate_graph(graph, report)

    _enter(RunState.EMITTING)
    manifest = build_manifest(graph, checks, report, files_checked=len(unit_files), now=now)
    output_path = write_manifest(manifest, output) if output is not None else None

    _enter(RunState.SUCCEEDED)
    return PipelineResult(
        state=RunState.SUCCEEDED,
        report=report,
        files_checked=len(unit_files),
        manifest=manifest,
        graph=graph,
        checks=checks,
        output_path=output_path,
    )
