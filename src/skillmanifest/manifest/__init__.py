"""Manifest: the deterministic JSON summary of a validated corpus."""

from skillmanifest.manifest.emitter import (
    ManifestValidationError,
    build_manifest,
    serialize_manifest,
    validate_manifest_file,
    write_manifest,
)
from skillmanifest.manifest.models import MANIFEST_VERSION, Manifest, ManifestStats, UnitSummary

__all__ = [
    "MANIFEST_VERSION",
    "Manifest",
    "ManifestStats",
    "ManifestValidationError",
    "UnitSummary",
    "build_manifest",
    "serialize_manifest",
    "validate_manifest_file",
    "write_manifest",
]
