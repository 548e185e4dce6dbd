"""Reference extractor: inline [skill:<id>] and [subagent:<id>] tokens in unit bodies."""

from __future__ import annotations

import re

from skillmanifest.units.models import Reference, Unit, UnitKind

REFERENCE_RE = re.compile(r"\[(skill|subagent):([a-z0-9-]+)\]")


def extract_references(body: str, *, self_id: str = "", start_line: int = 1) -> list[Reference]:
    """Return one Reference per distinct (kind, id), excluding self-references.

    Each reference carries the first line it appears on, counted from
    start_line. Results are sorted by target then kind.
    """
    found: dict[tuple[str, str], Reference] = {}
    for match in REFERENCE_RE.finditer(body):
        kind, target = match.group(1), match.group(2)
        if target == self_id or (kind, target) in found:
            continue
        line = start_line + body.count("\n", 0, match.start())
        found[(kind, target)] = Reference(kind=UnitKind(kind), target=target, line=line)
    return sorted(found.values(), key=lambda r: (r.target, r.kind.value))


def with_references(unit: Unit) -> Unit:
    """Copy of unit with its body references extracted."""
    refs = extract_references(unit.body, self_id=unit.id, start_line=unit.body_start_line)
    return unit.model_copy(update={"references": refs})


def inferred_dependencies(referenced: set[str], declared: set[str], self_id: str) -> set[str]:
    """Referenced ids minus declared dependencies minus the unit itself."""
    return referenced - declared - {self_id}
