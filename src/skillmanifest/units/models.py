"""Pydantic models and enums for content units."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class UnitKind(StrEnum):
    SKILL = "skill"
    SUBAGENT = "subagent"
    COMMAND = "command"
    RULE = "rule"


# Platform-specific sub-objects, in manifest order
PLATFORM_BLOCKS: tuple[str, ...] = ("claudecode", "opencode", "copilot", "codexcli", "geminicli")


@dataclass(frozen=True)
class UnitFile:
    """A discovered unit file, before it has been read."""

    path: Path
    kind: UnitKind
    unit_id: str
    source_path: str  # posix, relative to the corpus root


class Reference(BaseModel):
    """An inline cross-reference token found in a unit body."""

    kind: UnitKind  # "skill" or "subagent", as written in the token
    target: str
    line: int


class Unit(BaseModel):
    """One parsed content file."""

    id: str
    kind: UnitKind
    source_path: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    declared_dependencies: set[str] = Field(default_factory=set)
    declared_conflicts: set[str] = Field(default_factory=set)
    platform_blocks: set[str] = Field(default_factory=set)
    body: str = ""
    body_start_line: int = 1
    line_count: int = 0
    references: list[Reference] = Field(default_factory=list)

    @property
    def referenced_ids(self) -> set[str]:
        return {ref.target for ref in self.references}

    def reference_line(self, target: str) -> int | None:
        for ref in self.references:
            if ref.target == target:
                return ref.line
        return None
