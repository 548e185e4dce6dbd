"""Manifest emitter: build, serialize deterministically, write atomically, re-validate."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from skillmanifest.graph.models import GraphCheckResult, UnitGraph
from skillmanifest.manifest.models import (
    MANIFEST_VERSION,
    VERSION_PATTERN,
    Manifest,
    ManifestStats,
    UnitSummary,
)
from skillmanifest.report import Report
from skillmanifest.units.frontmatter import as_id_set
from skillmanifest.units.models import Unit, UnitKind
from skillmanifest.units.references import inferred_dependencies

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("version", "generatedAt", "stats", "units")


class ManifestValidationError(Exception):
    """Raised when a manifest file does not match the manifest schema."""


def summarize_unit(unit: Unit) -> UnitSummary:
    fm = unit.frontmatter
    tags = fm.get("tags")
    inferred = inferred_dependencies(unit.referenced_ids, unit.declared_dependencies, unit.id)
    return UnitSummary(
        kind=unit.kind,
        name=str(fm.get("name") or unit.id),
        version=str(fm.get("version") or "0.0.1"),
        description=str(fm.get("description") or ""),
        tags=sorted(str(t) for t in tags) if isinstance(tags, list) else [],
        depends_on=sorted(unit.declared_dependencies),
        inferred_dependencies=sorted(inferred),
        optional=sorted(as_id_set(fm.get("optional"))),
        conflicts_with=sorted(unit.declared_conflicts),
        source_path=unit.source_path,
        line_count=unit.line_count,
        platforms=sorted(unit.platform_blocks) or ["*"],
    )


def build_manifest(
    graph: UnitGraph,
    checks: GraphCheckResult,
    report: Report,
    *,
    files_checked: int,
    now: datetime | None = None,
) -> Manifest:
    """Assemble the manifest value. Every list is in a stable order."""
    units = {
        unit_id: summarize_unit(graph.units_by_id[unit_id])
        for unit_id in sorted(graph.units_by_id)
    }
    by_kind = {kind.value: 0 for kind in UnitKind}
    for summary in units.values():
        by_kind[summary.kind.value] += 1

    findings = report.findings
    cycles = sorted(checks.cycles)
    conflicts = sorted(checks.conflicts, key=lambda c: (c.unit, c.target, c.type.value))

    stats = ManifestStats(
        total_units=len(units),
        by_kind=by_kind,
        with_dependencies=sum(1 for s in units.values() if s.depends_on),
        with_conflicts=sum(1 for s in units.values() if s.conflicts_with),
        files_checked=files_checked,
        errors=len(report.errors),
        warnings=len(report.warnings),
        circular_dependencies=len(cycles),
        conflicts=len(conflicts),
    )
    return Manifest(
        version=MANIFEST_VERSION,
        generated_at=now or datetime.now(UTC),
        stats=stats,
        units=units,
        errors=findings or None,
        cycles=cycles or None,
        conflicts=conflicts or None,
    )


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    return manifest.model_dump(mode="json", by_alias=True, exclude_none=True)


def serialize_manifest(manifest: Manifest) -> str:
    """JSON text with every mapping's keys sorted; byte-identical for identical input."""
    data = manifest_to_dict(manifest)
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def _atomic_write(path: Path, content: str) -> None:
    """Write content to path atomically using tempfile + os.replace."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode("utf-8"))
        os.close(fd)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.close(fd)
        except OSError:
            pass
        os.unlink(tmp)
        raise


def write_manifest(manifest: Manifest, path: Path) -> Path:
    """Write the manifest to path atomically. Returns path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(path, serialize_manifest(manifest))
    logger.info(f"Manifest written: {path}")
    return path


def validate_manifest_file(path: Path) -> Manifest:
    """Load an existing manifest and check it against the manifest schema.

    Raises ManifestValidationError describing the first problem found.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ManifestValidationError(f"manifest not found: {path}") from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestValidationError(f"unreadable manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestValidationError("manifest must be a JSON object")

    for key in _REQUIRED_KEYS:
        if key not in data:
            raise ManifestValidationError(f"Missing required field: {key}")

    if not isinstance(data["version"], str) or not re.match(VERSION_PATTERN, data["version"]):
        raise ManifestValidationError(f"Invalid manifest version: {data['version']!r}")

    try:
        datetime.fromisoformat(str(data["generatedAt"]).replace("Z", "+00:00"))
    except ValueError as e:
        raise ManifestValidationError(
            f"Invalid generatedAt timestamp: {data['generatedAt']!r}"
        ) from e

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ManifestValidationError(f"Manifest schema violation: {problems}") from e
