"""Report aggregator: findings collected from every stage without stopping the run."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class FindingCode(StrEnum):
    PARSE_ERROR = "ParseError"
    SCHEMA_ERROR = "SchemaError"
    REFERENCE_ERROR = "ReferenceError"
    CYCLE_ERROR = "CycleError"
    ASYMMETRIC_CONFLICT = "AsymmetricConflict"
    NAMING_WARNING = "NamingWarning"


_SEVERITY_RANK: dict[str, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
}


class Finding(BaseModel):
    """One reported error or warning, located by unit and source path."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    unit_id: str
    severity: Severity
    code: FindingCode
    message: str
    source_path: str
    line: int | None = None

    def sort_key(self) -> tuple[int, str, int, str, str, str]:
        return (
            _SEVERITY_RANK[self.severity],
            self.source_path,
            self.line if self.line is not None else -1,
            self.code.value,
            self.message,
            self.unit_id,
        )

    @property
    def location(self) -> str:
        return f"{self.source_path}:{self.line}" if self.line is not None else self.source_path


class Report:
    """Append-only collector of findings.

    Stages receive a Report explicitly and add to it; per-unit workers build
    their own Report and the caller merges them.
    """

    def __init__(self, findings: Iterable[Finding] = ()) -> None:
        self._findings: list[Finding] = list(findings)

    def add(self, finding: Finding) -> None:
        self._findings.append(finding)

    def error(
        self,
        code: FindingCode,
        unit_id: str,
        source_path: str,
        message: str,
        line: int | None = None,
    ) -> None:
        self.add(
            Finding(
                unit_id=unit_id,
                severity=Severity.ERROR,
                code=code,
                message=message,
                source_path=source_path,
                line=line,
            )
        )

    def warning(
        self,
        code: FindingCode,
        unit_id: str,
        source_path: str,
        message: str,
        line: int | None = None,
    ) -> None:
        self.add(
            Finding(
                unit_id=unit_id,
                severity=Severity.WARNING,
                code=code,
                message=message,
                source_path=source_path,
                line=line,
            )
        )

    def merge(self, *others: Report) -> Report:
        """Return a new Report holding this report's findings followed by the others'."""
        merged = list(self._findings)
        for other in others:
            merged.extend(other._findings)
        return Report(merged)

    @property
    def findings(self) -> list[Finding]:
        """All findings: errors first, then by source path, then by line."""
        return sorted(self._findings, key=Finding.sort_key)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    def by_code(self, code: FindingCode) -> list[Finding]:
        return [f for f in self.findings if f.code == code]

    def has_fatal_errors(self, strict: bool = True) -> bool:
        """Whether the run should exit nonzero.

        Strict: any Error finding is fatal. Non-strict: only parse failures are.
        Warnings never are.
        """
        if strict:
            return any(f.severity == Severity.ERROR for f in self._findings)
        return any(
            f.severity == Severity.ERROR and f.code == FindingCode.PARSE_ERROR
            for f in self._findings
        )

    def __len__(self) -> int:
        return len(self._findings)

    def __repr__(self) -> str:
        return f"Report(errors={len(self.errors)}, warnings={len(self.warnings)})"


def format_report(
    report: Report,
    *,
    files_checked: int,
    cycles: list[list[str]] | None = None,
) -> str:
    """Render the grouped human-readable report: errors, then warnings, then counts."""
    errors = report.errors
    warnings = report.warnings
    rule = "=" * 70
    lines = [
        rule,
        f"Files checked: {files_checked}",
        f"Errors: {len(errors)}",
        f"Warnings: {len(warnings)}",
        rule,
    ]

    if errors:
        lines.append("")
        lines.append("ERRORS:")
        for finding in errors:
            lines.append(f"  {finding.location} [{finding.code}]")
            lines.append(f"     {finding.message}")

    if warnings:
        lines.append("")
        lines.append("WARNINGS:")
        for finding in warnings:
            lines.append(f"  {finding.location} [{finding.code}]")
            lines.append(f"     {finding.message}")

    if cycles:
        lines.append("")
        lines.append(f"Circular dependencies: {len(cycles)}")
        for cycle in cycles:
            lines.append(f"  - {' -> '.join(cycle)}")

    lines.append("")
    if not errors and not warnings:
        lines.append("All files passed validation.")
    elif not errors:
        lines.append("No errors, but warnings present.")
    else:
        lines.append("Validation failed. Fix the errors above.")
    return "\n".join(lines)
