"""Configuration for manifest builds."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".skillmanifest.json"


def _safe_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class ManifestConfig:
    root: str = ".rulesync"
    output: str = ".rulesync/manifest/skill-manifest.json"
    strict: bool = True
    jobs: int = 1
    debounce_seconds: float = 0.3
    poll_interval: float = 0.5


def load_manifest_config(path: Path | None = None) -> ManifestConfig:
    """Load manifest config from .skillmanifest.json, then apply env overrides."""
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
    config = ManifestConfig()
    if path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                section = data.get("manifest", {}) if isinstance(data, dict) else {}
                if isinstance(section, dict):
                    _apply(config, section)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load manifest config from {path}: {e}")
    if env_root := os.environ.get("SKILLMANIFEST_ROOT"):
        config.root = env_root
    if env_output := os.environ.get("SKILLMANIFEST_OUTPUT"):
        config.output = env_output
    if env_strict := os.environ.get("SKILLMANIFEST_STRICT"):
        config.strict = env_strict.lower() in ("true", "1", "yes")
    if env_jobs := os.environ.get("SKILLMANIFEST_JOBS"):
        config.jobs = max(1, _safe_int(env_jobs, config.jobs))
    return config


def _apply(config: ManifestConfig, data: dict[str, object]) -> None:
    if "root" in data and isinstance(data["root"], str):
        config.root = data["root"]
    if "output" in data and isinstance(data["output"], str):
        config.output = data["output"]
    if "strict" in data and isinstance(data["strict"], bool):
        config.strict = data["strict"]
    if "jobs" in data and isinstance(data["jobs"], int) and not isinstance(data["jobs"], bool):
        config.jobs = max(1, data["jobs"])
    for key in ("debounce_seconds", "poll_interval"):
        value = data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
            setattr(config, key, float(value))
