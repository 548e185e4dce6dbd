"""Tests for CLI entry point."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from skillmanifest import cli
from skillmanifest.cli import _cmd_watch, build_parser, main
from skillmanifest.config import ManifestConfig


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """No config file or env overrides leak in from the developer's machine."""
    monkeypatch.chdir(tmp_path)
    for name in ("SKILLMANIFEST_ROOT", "SKILLMANIFEST_OUTPUT", "SKILLMANIFEST_STRICT", "SKILLMANIFEST_JOBS"):
        monkeypatch.delenv(name, raising=False)


def _argv(corpus: Path, output: Path, *extra: str) -> list[str]:
    return ["skillmanifest", "--root", str(corpus), "--output", str(output), *extra]


class TestBuild:
    def test_clean_corpus_exits_zero(self, sample_corpus, tmp_path, capsys):
        output = tmp_path / "out" / "skill-manifest.json"
        with patch("sys.argv", _argv(sample_corpus, output)):
            main()
        captured = capsys.readouterr()
        assert "Files checked: 5" in captured.out
        assert "All files passed validation." in captured.out
        assert f"Manifest built: {output}" in captured.out
        assert "Total units: 5" in captured.out
        assert json.loads(output.read_text())["stats"]["totalUnits"] == 5

    def test_default_paths_relative_to_cwd(self, sample_corpus, tmp_path):
        with patch("sys.argv", ["skillmanifest"]):
            main()
        assert (tmp_path / ".rulesync" / "manifest" / "skill-manifest.json").exists()

    def test_errors_exit_nonzero_but_manifest_written(self, corpus, write_skill, tmp_path, capsys):
        write_skill("a", depends_on=["ghost"])
        output = tmp_path / "m.json"
        with patch("sys.argv", _argv(corpus, output)):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "ERRORS:" in captured.out
        assert "[ReferenceError]" in captured.out
        assert "Validation failed. Fix the errors above." in captured.out
        assert output.exists()

    def test_no_strict_tolerates_graph_errors(self, corpus, write_skill, tmp_path):
        write_skill("a", depends_on=["ghost"])
        with patch("sys.argv", _argv(corpus, tmp_path / "m.json", "--no-strict")):
            main()

    def test_no_strict_still_fails_on_parse_error(self, corpus, write_unit, tmp_path):
        write_unit("skill", "broken", None, "no header")
        with patch("sys.argv", _argv(corpus, tmp_path / "m.json", "--no-strict")):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1

    def test_warnings_only_exit_zero(self, corpus, write_skill, tmp_path, capsys):
        write_skill("My_Skill")
        with patch("sys.argv", _argv(corpus, tmp_path / "m.json")):
            main()
        captured = capsys.readouterr()
        assert "WARNINGS:" in captured.out
        assert "No errors, but warnings present." in captured.out

    def test_cycle_listed(self, corpus, write_skill, tmp_path, capsys):
        write_skill("a", depends_on=["b"])
        write_skill("b", depends_on=["a"])
        with patch("sys.argv", _argv(corpus, tmp_path / "m.json")):
            with pytest.raises(SystemExit):
                main()
        captured = capsys.readouterr()
        assert "Circular dependencies: 1" in captured.out
        assert "a -> b -> a" in captured.out

    def test_missing_root_exits_without_manifest(self, tmp_path, capsys):
        output = tmp_path / "m.json"
        with patch("sys.argv", _argv(tmp_path / "missing", output)):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
        assert not output.exists()

    def test_config_file_used(self, sample_corpus, tmp_path):
        output = tmp_path / "from-config.json"
        config_file = tmp_path / "cfg.json"
        config_file.write_text(
            json.dumps({"manifest": {"root": str(sample_corpus), "output": str(output)}})
        )
        with patch("sys.argv", ["skillmanifest", "--config", str(config_file)]):
            main()
        assert output.exists()

    def test_jobs_flag(self, sample_corpus, tmp_path):
        output = tmp_path / "m.json"
        with patch("sys.argv", _argv(sample_corpus, output, "-j", "4")):
            main()
        assert len(json.loads(output.read_text())["units"]) == 5


class TestValidate:
    def test_valid_manifest(self, sample_corpus, tmp_path, capsys):
        output = tmp_path / "m.json"
        main(_argv(sample_corpus, output)[1:])
        capsys.readouterr()
        main(["--validate", "--output", str(output)])
        assert "Manifest validation passed" in capsys.readouterr().out

    def test_missing_manifest(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--validate", "--output", str(tmp_path / "none.json")])
        assert exc_info.value.code == 1
        assert "Validation failed" in capsys.readouterr().err

    def test_corrupt_manifest(self, tmp_path, capsys):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"version": "1.0.0"}))
        with pytest.raises(SystemExit):
            main(["--validate", "--output", str(path)])
        assert "Missing required field" in capsys.readouterr().err


class TestParser:
    def test_validate_and_watch_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--validate", "--watch"])

    def test_strict_defaults_to_none(self):
        args = build_parser().parse_args([])
        assert args.strict is None
        assert build_parser().parse_args(["--strict"]).strict is True

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "skillmanifest" in capsys.readouterr().out


class TestWatch:
    def test_single_run(self, sample_corpus, tmp_path, capsys):
        output = tmp_path / "m.json"
        config = ManifestConfig(root=str(sample_corpus), output=str(output))
        _cmd_watch(config, max_runs=1)
        captured = capsys.readouterr()
        assert f"Watching {sample_corpus}" in captured.out
        assert output.exists()

    def test_errors_do_not_stop_watching(self, corpus, write_skill, tmp_path):
        write_skill("a", depends_on=["ghost"])
        config = ManifestConfig(root=str(corpus), output=str(tmp_path / "m.json"))
        _cmd_watch(config, max_runs=1)

    def test_failed_run_keeps_watching(self, sample_corpus, tmp_path):
        output = tmp_path / "manifest.json"
        output.mkdir()
        config = ManifestConfig(root=str(sample_corpus), output=str(output))
        with (
            patch("skillmanifest.cli._build_once", wraps=cli._build_once) as build,
            patch(
                "skillmanifest.cli.CorpusWatcher.wait_for_change", side_effect=lambda snap: snap
            ),
        ):
            _cmd_watch(config, max_runs=3)
        assert build.call_count == 3
        assert output.is_dir()

    def test_missing_root_exits(self, tmp_path, capsys):
        config = ManifestConfig(root=str(tmp_path / "missing"))
        with pytest.raises(SystemExit) as exc_info:
            _cmd_watch(config, max_runs=1)
        assert exc_info.value.code == 1
        assert "corpus root not found" in capsys.readouterr().err

    def test_interrupt_stops_cleanly(self, sample_corpus, tmp_path, capsys):
        config = ManifestConfig(root=str(sample_corpus), output=str(tmp_path / "m.json"))
        with patch(
            "skillmanifest.cli.CorpusWatcher.run_forever", side_effect=KeyboardInterrupt
        ):
            _cmd_watch(config)
        assert "Stopped watching." in capsys.readouterr().out

    def test_main_dispatches_watch(self, sample_corpus):
        with patch("skillmanifest.cli._cmd_watch") as watch:
            main(["--watch", "--root", str(sample_corpus)])
        [config] = watch.call_args.args
        assert config.root == str(sample_corpus)
