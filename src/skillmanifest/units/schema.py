"""Schema validator: per-kind required/banned fields, field order, tool allow-lists."""

from __future__ import annotations

import re
from dataclasses import dataclass

from skillmanifest.report import FindingCode, Report
from skillmanifest.units.models import Unit, UnitKind

KEBAB_CASE_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

_BANNED_TOP_LEVEL: tuple[str, ...] = ("tools", "model", "mode")

# Where each banned top-level field belongs instead
BANNED_FIELD_HOMES: dict[str, str] = {
    "tools": "claudecode.allowed-tools, opencode.tools or copilot.tools",
    "model": "a platform block (claudecode, opencode or copilot)",
    "mode": "the opencode block",
}

VALID_TOOLS: dict[str, frozenset[str]] = {
    "claudecode": frozenset({"Read", "Grep", "Glob", "Bash", "Edit", "Write"}),
    "opencode": frozenset({"bash", "edit", "write"}),
    "copilot": frozenset({"read", "search", "execute", "edit"}),
}

# Key inside each platform block that holds the tool list
_TOOL_KEYS: dict[str, str] = {
    "claudecode": "allowed-tools",
    "opencode": "tools",
    "copilot": "tools",
}


@dataclass(frozen=True)
class KindSchema:
    kind: UnitKind
    required: tuple[str, ...]
    banned: tuple[str, ...]
    field_order: tuple[str, ...]


KIND_SCHEMAS: dict[UnitKind, KindSchema] = {
    UnitKind.SKILL: KindSchema(
        kind=UnitKind.SKILL,
        required=("name", "description", "targets"),
        banned=_BANNED_TOP_LEVEL,
        field_order=("name", "description", "targets", "tags", "version", "author"),
    ),
    UnitKind.SUBAGENT: KindSchema(
        kind=UnitKind.SUBAGENT,
        required=("name", "description", "targets"),
        banned=_BANNED_TOP_LEVEL,
        field_order=("name", "description", "targets", "tags", "version", "author"),
    ),
    UnitKind.COMMAND: KindSchema(
        kind=UnitKind.COMMAND,
        required=("description", "targets"),
        banned=_BANNED_TOP_LEVEL,
        field_order=("description", "targets"),
    ),
    UnitKind.RULE: KindSchema(
        kind=UnitKind.RULE,
        required=("targets", "description"),
        banned=_BANNED_TOP_LEVEL,
        field_order=("root", "localRoot", "targets", "description", "globs"),
    ),
}


def is_kebab_case(value: str) -> bool:
    return bool(KEBAB_CASE_RE.match(value))


def validate_unit_schema(unit: Unit, report: Report) -> None:
    """Check one unit against the schema for its kind. Never discards the unit."""
    schema = KIND_SCHEMAS[unit.kind]
    fm = unit.frontmatter

    for field in schema.required:
        if field not in fm:
            report.error(
                FindingCode.SCHEMA_ERROR,
                unit.id,
                unit.source_path,
                f'Missing required field "{field}" for {unit.kind}',
            )

    for field in schema.banned:
        if field in fm:
            report.error(
                FindingCode.SCHEMA_ERROR,
                unit.id,
                unit.source_path,
                f'Banned field "{field}" at top level; move it under '
                f"{BANNED_FIELD_HOMES[field]}",
            )

    _check_id_list(unit, "depends_on", report)
    _check_id_list(unit, "conflicts_with", report)
    _check_field_order(unit, schema, report)
    _check_tools(unit, report)

    if not is_kebab_case(unit.id):
        suggestion = re.sub(r"[\s_]+", "-", unit.id.strip()).lower()
        report.warning(
            FindingCode.NAMING_WARNING,
            unit.id,
            unit.source_path,
            f'{unit.kind.capitalize()} id "{unit.id}" should be kebab-case '
            f'(e.g. "{suggestion}")',
        )


def _check_id_list(unit: Unit, field: str, report: Report) -> None:
    value = unit.frontmatter.get(field)
    if value is None or isinstance(value, str):
        return
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        report.error(
            FindingCode.SCHEMA_ERROR,
            unit.id,
            unit.source_path,
            f'Field "{field}" must be a list of unit ids',
        )


def _check_field_order(unit: Unit, schema: KindSchema, report: Report) -> None:
    actual = [key for key in unit.frontmatter if not key.startswith("_")]
    present = [field for field in schema.field_order if field in actual]
    recommended = ", ".join(schema.field_order)

    for current, following in zip(present, present[1:]):
        if actual.index(current) > actual.index(following):
            report.warning(
                FindingCode.NAMING_WARNING,
                unit.id,
                unit.source_path,
                f'Field "{following}" should come before "{current}" '
                f"(recommended order: {recommended})",
            )


def _check_tools(unit: Unit, report: Report) -> None:
    for platform, allowed in VALID_TOOLS.items():
        block = unit.frontmatter.get(platform)
        if not isinstance(block, dict):
            continue
        key = _TOOL_KEYS[platform]
        for tool in _tool_names(block.get(key)):
            if tool not in allowed:
                report.error(
                    FindingCode.SCHEMA_ERROR,
                    unit.id,
                    unit.source_path,
                    f'Invalid tool "{tool}" in {platform}.{key} '
                    f"(allowed: {', '.join(sorted(allowed))})",
                )


def _tool_names(value: object) -> list[str]:
    """Tool names from a list, or from the keys of an enable/disable mapping."""
    if isinstance(value, dict):
        return [str(key) for key in value]
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return []
