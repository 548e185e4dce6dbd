"""Pydantic models for the emitted manifest. Field names serialize as camelCase."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from skillmanifest.graph.models import ConflictFinding
from skillmanifest.report import Finding
from skillmanifest.units.models import UnitKind

MANIFEST_VERSION = "1.0.0"
VERSION_PATTERN = r"^\d+\.\d+\.\d+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnitSummary(_CamelModel):
    kind: UnitKind
    name: str
    version: str = "0.0.1"
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    inferred_dependencies: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    conflicts_with: list[str] = Field(default_factory=list)
    source_path: str
    line_count: int = 0
    platforms: list[str] = Field(default_factory=lambda: ["*"])


class ManifestStats(_CamelModel):
    total_units: int = 0
    by_kind: dict[str, int] = Field(default_factory=dict)
    with_dependencies: int = 0
    with_conflicts: int = 0
    files_checked: int = 0
    errors: int = 0
    warnings: int = 0
    circular_dependencies: int = 0
    conflicts: int = 0


class Manifest(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    version: str = Field(default=MANIFEST_VERSION, pattern=VERSION_PATTERN)
    generated_at: datetime
    stats: ManifestStats
    units: dict[str, UnitSummary]
    errors: list[Finding] | None = None
    cycles: list[list[str]] | None = None
    conflicts: list[ConflictFinding] | None = None
