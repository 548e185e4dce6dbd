"""Frontmatter parser: split the --- header from the body and parse it as YAML."""

from __future__ import annotations

import logging
from typing import Any

import yaml

from skillmanifest.report import FindingCode, Report
from skillmanifest.units.models import PLATFORM_BLOCKS, Unit, UnitFile

logger = logging.getLogger(__name__)

DELIMITER = "---"


class FrontmatterError(Exception):
    """Raised when a unit's header is missing or malformed."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


def split_frontmatter(text: str) -> tuple[str, str, int]:
    """Split raw unit text into (header, body, body_start_line).

    The header must open on the first line with a line containing only ---
    and close with the next such line. Line numbers are 1-based.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != DELIMITER:
        raise FrontmatterError("Missing YAML frontmatter: file must start with ---", line=1)

    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == DELIMITER:
            header = "\n".join(lines[1:i])
            body = "\n".join(lines[i + 1 :])
            return header, body, i + 2

    raise FrontmatterError("Unterminated YAML frontmatter: no closing ---", line=1)


def load_frontmatter(header: str) -> dict[str, Any]:
    """Parse the header block. An empty header is an empty mapping."""
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as e:
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            # +2: the header starts on line 2 of the file
            line = mark.line + 2
        raise FrontmatterError(f"YAML parsing error: {_single_line(str(e))}", line=line) from e
    except ValueError as e:
        # Raised by the constructor for scalars like 2024-02-30; no mark is attached
        raise FrontmatterError(f"YAML parsing error: {_single_line(str(e))}", line=2) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Frontmatter must be a YAML mapping, got {type(data).__name__}", line=2
        )
    return {str(key): value for key, value in data.items()}


def parse_unit(unit_file: UnitFile, report: Report) -> Unit | None:
    """Read and parse one unit file.

    Returns None, with a ParseError finding in report, when the file is
    unreadable or its header is missing or malformed.
    """
    try:
        text = unit_file.path.read_text(encoding="utf-8")
    except FileNotFoundError:
        report.error(
            FindingCode.PARSE_ERROR,
            unit_file.unit_id,
            unit_file.source_path,
            f"{unit_file.path.name} not found",
        )
        return None
    except (OSError, UnicodeDecodeError) as e:
        report.error(
            FindingCode.PARSE_ERROR,
            unit_file.unit_id,
            unit_file.source_path,
            f"Unreadable unit file: {e}",
        )
        return None

    try:
        header, body, body_start = split_frontmatter(text)
        frontmatter = load_frontmatter(header)
    except FrontmatterError as e:
        logger.debug(f"Parse failure in {unit_file.source_path}: {e}")
        report.error(
            FindingCode.PARSE_ERROR,
            unit_file.unit_id,
            unit_file.source_path,
            str(e),
            line=e.line,
        )
        return None

    return Unit(
        id=unit_file.unit_id,
        kind=unit_file.kind,
        source_path=unit_file.source_path,
        frontmatter=frontmatter,
        declared_dependencies=as_id_set(frontmatter.get("depends_on")),
        declared_conflicts=as_id_set(frontmatter.get("conflicts_with")),
        platform_blocks={
            block
            for block in PLATFORM_BLOCKS
            if block in frontmatter and frontmatter[block] is not None
        },
        body=body,
        body_start_line=body_start,
        line_count=len(text.split("\n")),
    )


def as_id_set(value: object) -> set[str]:
    """Coerce a depends_on/conflicts_with value to a set of ids.

    A bare string is a single id; non-string list items are dropped here and
    reported by the schema validator.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        return {value.strip()} if value.strip() else set()
    if isinstance(value, list):
        return {item.strip() for item in value if isinstance(item, str) and item.strip()}
    return set()


def _single_line(message: str) -> str:
    return " ".join(part.strip() for part in message.splitlines() if part.strip())
