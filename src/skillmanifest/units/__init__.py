"""Content units: discovery, frontmatter parsing, schema checks, reference extraction."""

from skillmanifest.units.frontmatter import FrontmatterError, parse_unit, split_frontmatter
from skillmanifest.units.loader import LoaderFatal, discover_units
from skillmanifest.units.models import PLATFORM_BLOCKS, Reference, Unit, UnitFile, UnitKind
from skillmanifest.units.references import extract_references, inferred_dependencies
from skillmanifest.units.schema import KIND_SCHEMAS, VALID_TOOLS, validate_unit_schema

__all__ = [
    "KIND_SCHEMAS",
    "PLATFORM_BLOCKS",
    "VALID_TOOLS",
    "FrontmatterError",
    "LoaderFatal",
    "Reference",
    "Unit",
    "UnitFile",
    "UnitKind",
    "discover_units",
    "extract_references",
    "inferred_dependencies",
    "parse_unit",
    "split_frontmatter",
    "validate_unit_schema",
]
