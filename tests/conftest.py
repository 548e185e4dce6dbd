"""Shared fixtures for skillmanifest tests."""

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from skillmanifest.units.models import UnitFile, UnitKind

_KIND_DIRS = {
    "skill": "skills",
    "subagent": "subagents",
    "command": "commands",
    "rule": "rules",
}


def _unit_text(frontmatter: dict | None, body: str) -> str:
    """Render a unit file: --- YAML header --- followed by the body."""
    if frontmatter is None:
        return body
    header = yaml.safe_dump(frontmatter, sort_keys=False).rstrip("\n")
    return f"---\n{header}\n---\n\n{body}\n"


def _write_unit(
    root: Path,
    kind: str,
    unit_id: str,
    frontmatter: dict | None,
    body: str = "Do the thing.",
) -> Path:
    kind_dir = root / _KIND_DIRS[kind]
    if kind == "skill":
        path = kind_dir / unit_id / "SKILL.md"
    else:
        path = kind_dir / f"{unit_id}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_unit_text(frontmatter, body))
    return path


def skill_fm(name: str, **extra: object) -> dict:
    """Minimal valid skill frontmatter."""
    return {"name": name, "description": f"{name} skill", "targets": ["*"], **extra}


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    """Empty corpus root with no kind subtrees."""
    root = tmp_path / ".rulesync"
    root.mkdir()
    return root


@pytest.fixture
def write_unit(corpus: Path) -> Callable[..., Path]:
    """Factory: write_unit(kind, unit_id, frontmatter, body=...) inside the corpus."""

    def _write(
        kind: str,
        unit_id: str,
        frontmatter: dict | None,
        body: str = "Do the thing.",
    ) -> Path:
        return _write_unit(corpus, kind, unit_id, frontmatter, body)

    return _write


@pytest.fixture
def write_skill(write_unit: Callable[..., Path]) -> Callable[..., Path]:
    """Factory: write_skill(unit_id, body=..., **frontmatter_extra) with valid base fields."""

    def _write(unit_id: str, body: str = "Do the thing.", **extra: object) -> Path:
        return write_unit("skill", unit_id, skill_fm(unit_id, **extra), body)

    return _write


@pytest.fixture
def make_unit_file(tmp_path: Path) -> Callable[..., UnitFile]:
    """Factory: write raw text to a file and return its UnitFile."""

    def _make(text: str, unit_id: str = "sample", kind: UnitKind = UnitKind.SKILL) -> UnitFile:
        path = tmp_path / f"{unit_id}.md"
        path.write_text(text)
        return UnitFile(path=path, kind=kind, unit_id=unit_id, source_path=path.name)

    return _make


@pytest.fixture
def sample_corpus(write_unit: Callable[..., Path], corpus: Path) -> Path:
    """A small healthy corpus: two skills, a subagent, a command and a rule."""
    write_unit(
        "skill",
        "csharp-basics",
        skill_fm("csharp-basics", tags=["dotnet", "csharp"], version="1.2.0"),
        "Start here.",
    )
    write_unit(
        "skill",
        "testing-xunit",
        skill_fm(
            "testing-xunit",
            depends_on=["csharp-basics"],
            claudecode={"allowed-tools": ["Read", "Bash"]},
        ),
        "Write xUnit tests.",
    )
    write_unit(
        "subagent",
        "dotnet-architect",
        {
            "name": "dotnet-architect",
            "description": "Architecture reviews",
            "targets": ["*"],
            "opencode": {"mode": "subagent", "tools": {"bash": True, "edit": False}},
        },
        "Load [skill:csharp-basics] first, then [skill:testing-xunit].",
    )
    write_unit(
        "command",
        "dotnet-build",
        {"description": "Build the solution", "targets": ["*"]},
        "Delegate to [subagent:dotnet-architect] when stuck.",
    )
    write_unit(
        "rule",
        "coding-style",
        {"targets": ["*"], "description": "House style"},
        "Prefer file-scoped namespaces.",
    )
    return corpus
