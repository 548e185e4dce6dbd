"""CLI entry point for skillmanifest."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import cast

from skillmanifest import __version__
from skillmanifest.config import ManifestConfig, load_manifest_config
from skillmanifest.manifest.emitter import ManifestValidationError, validate_manifest_file
from skillmanifest.pipeline import PipelineResult, run_pipeline
from skillmanifest.report import format_report
from skillmanifest.units.loader import LoaderFatal
from skillmanifest.watcher import CorpusWatcher

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(args: argparse.Namespace) -> ManifestConfig:
    config = load_manifest_config(cast(Path | None, args.config))
    if args.root is not None:
        config.root = str(args.root)
    if args.output is not None:
        config.output = str(args.output)
    if args.strict is not None:
        config.strict = cast(bool, args.strict)
    if args.jobs is not None:
        config.jobs = max(1, cast(int, args.jobs))
    return config


def _print_result(result: PipelineResult) -> None:
    text = format_report(
        result.report,
        files_checked=result.files_checked,
        cycles=result.checks.cycles,
    )
    print(text)
    if result.manifest is not None:
        stats = result.manifest.stats
        if result.output_path is not None:
            print(f"\nManifest built: {result.output_path}")
        print(f"  - Total units: {stats.total_units}")
        print(f"  - With dependencies: {stats.with_dependencies}")
        print(f"  - With conflicts: {stats.with_conflicts}")


def _build_once(config: ManifestConfig) -> PipelineResult:
    result = run_pipeline(Path(config.root), Path(config.output), jobs=config.jobs)
    _print_result(result)
    return result


def _cmd_build(config: ManifestConfig) -> None:
    try:
        result = _build_once(config)
    except LoaderFatal as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if result.has_fatal_errors(config.strict):
        sys.exit(1)


def _cmd_validate(config: ManifestConfig) -> None:
    path = Path(config.output)
    try:
        manifest = validate_manifest_file(path)
    except ManifestValidationError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Manifest validation passed: {path} ({manifest.stats.total_units} units)")


def _cmd_watch(config: ManifestConfig, max_runs: int | None = None) -> None:
    root = Path(config.root)
    if not root.is_dir():
        print(f"Error: corpus root not found: {root}", file=sys.stderr)
        sys.exit(1)

    def _run() -> None:
        try:
            _build_once(config)
        except LoaderFatal as e:
            logger.error(f"Build aborted: {e}")
        except Exception:
            logger.exception("Build failed; still watching")

    print(f"Watching {root} for changes...")
    watcher = CorpusWatcher(
        root,
        _run,
        debounce_seconds=config.debounce_seconds,
        poll_interval=config.poll_interval,
    )
    try:
        watcher.run_forever(max_runs=max_runs)
    except KeyboardInterrupt:
        print("\nStopped watching.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillmanifest",
        description="Build and validate the skill manifest for a rulesync content corpus",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"skillmanifest {__version__}"
    )
    mode = parser.add_mutually_exclusive_group()
    _ = mode.add_argument(
        "--validate",
        action="store_true",
        help="Check an existing manifest against the manifest schema (no corpus scan)",
    )
    _ = mode.add_argument(
        "--watch",
        action="store_true",
        help="Rebuild the manifest whenever unit files change",
    )
    _ = parser.add_argument("--root", type=Path, default=None, help="Corpus root directory")
    _ = parser.add_argument("--output", type=Path, default=None, help="Manifest output path")
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ./.skillmanifest.json)",
    )
    _ = parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Exit nonzero on any error finding (--no-strict: parse errors only)",
    )
    _ = parser.add_argument(
        "-j", "--jobs", type=int, default=None, help="Worker threads for per-unit stages"
    )
    _ = parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(cast(int, args.verbose))
    config = _resolve_config(args)

    if args.validate:
        _cmd_validate(config)
    elif args.watch:
        _cmd_watch(config)
    else:
        _cmd_build(config)
