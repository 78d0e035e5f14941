"""
Tests for the clusternamer command-line interface.
"""

import logging
import os

import pytest

from clusternamer import cli, config


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Close handlers that main() attaches to the package logger."""
    yield
    package_logger = logging.getLogger("clusternamer")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CLUSTERNAMER_"):
            monkeypatch.delenv(key)


class TestParser:

    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert args.input_dir is None
        assert args.output_dir is None
        assert not args.keep_intermediates

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.build_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert "clusternamer" in capsys.readouterr().out

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--log-level", "LOUD"])


class TestLoadCliConfig:

    def test_command_line_overrides_config_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        config.get_default_config().update(
            input_dir="from_file", sixteen_s__min_identity_pct=99.0
        ).to_yaml(path)
        args = cli.build_parser().parse_args(
            ["--config", str(path), "-i", "from_cli", "--keep-intermediates"]
        )
        cfg = cli.load_cli_config(args)
        assert str(cfg.input_dir) == "from_cli"
        assert cfg.sixteen_s.min_identity_pct == 99.0
        assert cfg.keep_intermediates

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CLUSTERNAMER_SIXTEEN_S__MIN_ALIGNMENT_LENGTH", "250")
        cfg = cli.load_cli_config(cli.build_parser().parse_args([]))
        assert cfg.sixteen_s.min_alignment_length == 250


class TestMain:

    def test_successful_run(self, example_input_dir, tmp_path):
        out = tmp_path / "results"
        code = cli.main(["-i", str(example_input_dir), "-o", str(out)])
        assert code == 0
        assert (out / "clusters_all_named.csv").exists()
        assert (out / "splits_and_mergers.csv").exists()
        assert (out / "clusternamer.log").exists()

    def test_log_file_has_phases(self, example_input_dir, tmp_path):
        out = tmp_path / "results"
        cli.main(["-i", str(example_input_dir), "-o", str(out), "--log-level", "DEBUG"])
        log_text = (out / "clusternamer.log").read_text(encoding="utf-8")
        assert "PHASE 1: Data Loading" in log_text
        assert "Naming run completed" in log_text

    def test_missing_input_returns_1(self, tmp_path, capsys):
        code = cli.main(["-i", str(tmp_path / "nothing"), "-o", str(tmp_path / "results")])
        assert code == 1
        assert "not found" in capsys.readouterr().err

    def test_bad_curation_returns_1(self, example_input_dir, tmp_path):
        curation = tmp_path / "curation.yaml"
        curation.write_text("species_to_keep: []\n")
        code = cli.main([
            "-i", str(example_input_dir), "-o", str(tmp_path / "results"),
            "--curation", str(curation),
        ])
        assert code == 1

    def test_bad_config_returns_1(self, tmp_path, capsys):
        code = cli.main(["--config", str(tmp_path / "missing.yaml")])
        assert code == 1
        assert "invalid configuration" in capsys.readouterr().err

    def test_write_config(self, tmp_path):
        path = tmp_path / "template.json"
        assert cli.main(["--write-config", str(path)]) == 0
        assert config.load_config_from_file(path) == config.get_default_config()
