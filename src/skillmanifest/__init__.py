"""skillmanifest: manifest builder and integrity validator for rulesync content units."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skillmanifest")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
