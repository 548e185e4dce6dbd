"""Corpus loader: discover unit files under the corpus root by kind convention."""

from __future__ import annotations

import logging
from pathlib import Path

from skillmanifest.units.models import UnitFile, UnitKind

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"

KIND_DIRS: dict[UnitKind, str] = {
    UnitKind.SKILL: "skills",
    UnitKind.SUBAGENT: "subagents",
    UnitKind.COMMAND: "commands",
    UnitKind.RULE: "rules",
}


class LoaderFatal(Exception):
    """Raised when the corpus root cannot be scanned at all."""


def discover_units(root: Path) -> list[UnitFile]:
    """Walk the corpus root and return every unit file, sorted by path.

    Skills live one per subdirectory in a SKILL.md; subagents and commands are
    flat *.md files; rules are *.md files at any depth under rules/. A skill
    directory without SKILL.md is still returned so the parser can report it.
    """
    if not root.exists():
        raise LoaderFatal(f"corpus root not found: {root}")
    if not root.is_dir():
        raise LoaderFatal(f"corpus root is not a directory: {root}")

    files: list[UnitFile] = []
    files.extend(_discover_skills(root))
    files.extend(_discover_flat(root, UnitKind.SUBAGENT))
    files.extend(_discover_flat(root, UnitKind.COMMAND))
    files.extend(_discover_rules(root))

    logger.debug(f"Discovered {len(files)} unit files under {root}")
    return files


def _unit_file(root: Path, path: Path, kind: UnitKind, unit_id: str) -> UnitFile:
    return UnitFile(
        path=path,
        kind=kind,
        unit_id=unit_id,
        source_path=path.relative_to(root).as_posix(),
    )


def _discover_skills(root: Path) -> list[UnitFile]:
    skills_dir = root / KIND_DIRS[UnitKind.SKILL]
    if not skills_dir.is_dir():
        return []
    return [
        _unit_file(root, skill_dir / SKILL_FILENAME, UnitKind.SKILL, skill_dir.name)
        for skill_dir in sorted(skills_dir.iterdir())
        if skill_dir.is_dir()
    ]


def _discover_flat(root: Path, kind: UnitKind) -> list[UnitFile]:
    kind_dir = root / KIND_DIRS[kind]
    if not kind_dir.is_dir():
        return []
    return [
        _unit_file(root, md_file, kind, md_file.stem)
        for md_file in sorted(kind_dir.glob("*.md"))
        if md_file.is_file()
    ]


def _discover_rules(root: Path) -> list[UnitFile]:
    rules_dir = root / KIND_DIRS[UnitKind.RULE]
    if not rules_dir.is_dir():
        return []
    return [
        _unit_file(root, md_file, UnitKind.RULE, md_file.stem)
        for md_file in sorted(rules_dir.rglob("*.md"))
        if md_file.is_file()
    ]
