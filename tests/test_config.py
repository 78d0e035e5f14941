"""
Unit tests for clusternamer.config

Tests cover:
- Default values and validation in __post_init__
- Nested updates with double underscore notation
- YAML/JSON round trips and templates
- Environment variable overrides
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from clusternamer import config


class TestDefaults(unittest.TestCase):
    """Test default configuration values."""

    def test_default_thresholds(self):
        cfg = config.get_default_config()
        self.assertEqual(cfg.sixteen_s.min_identity_pct, 98.0)
        self.assertEqual(cfg.sixteen_s.min_alignment_length, 100)

    def test_default_file_names(self):
        cfg = config.get_default_config()
        self.assertEqual(cfg.inputs.genomes_clusters, "genomes_clusters.csv")
        self.assertEqual(cfg.inputs.sixteen_s_hits, "sixteen_s_hits.tsv")
        self.assertIsNone(cfg.curation_file)
        self.assertFalse(cfg.keep_intermediates)

    def test_input_path(self):
        cfg = config.PipelineConfig(input_dir="runs/data")
        self.assertEqual(cfg.input_path("genomes_ncbi"), Path("runs/data/genomes_ncbi.csv"))


class TestValidation(unittest.TestCase):
    """Test __post_init__ validation."""

    def test_identity_out_of_range(self):
        with self.assertRaises(ValueError):
            config.SixteenSConfig(min_identity_pct=101)
        with self.assertRaises(ValueError):
            config.SixteenSConfig(min_identity_pct=0)

    def test_alignment_length_too_short(self):
        with self.assertRaises(ValueError):
            config.SixteenSConfig(min_alignment_length=0)

    def test_empty_file_name(self):
        with self.assertRaises(ValueError):
            config.InputFilesConfig(genomes_ncbi="")

    def test_invalid_log_level(self):
        with self.assertRaises(ValueError):
            config.PipelineConfig(log_level="VERBOSE")

    def test_string_paths_converted(self):
        cfg = config.PipelineConfig(input_dir="in", output_dir="out", curation_file="cur.yaml")
        self.assertIsInstance(cfg.input_dir, Path)
        self.assertIsInstance(cfg.output_dir, Path)
        self.assertIsInstance(cfg.curation_file, Path)


class TestUpdate(unittest.TestCase):
    """Test immutable updates."""

    def test_nested_update(self):
        cfg = config.get_default_config()
        updated = cfg.update(sixteen_s__min_identity_pct=99.0, inputs__genomes_ncbi="ncbi.tsv")
        self.assertEqual(updated.sixteen_s.min_identity_pct, 99.0)
        self.assertEqual(updated.inputs.genomes_ncbi, "ncbi.tsv")
        # original unchanged
        self.assertEqual(cfg.sixteen_s.min_identity_pct, 98.0)

    def test_top_level_update_converts_paths(self):
        updated = config.get_default_config().update(output_dir="elsewhere")
        self.assertEqual(updated.output_dir, Path("elsewhere"))

    def test_update_validates(self):
        with self.assertRaises(ValueError):
            config.get_default_config().update(sixteen_s__min_identity_pct=150)

    def test_unknown_parameter(self):
        with self.assertRaises(TypeError):
            config.get_default_config().update(threads=4)


class TestFiles(unittest.TestCase):
    """Test saving and loading configuration files."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_yaml_round_trip(self):
        cfg = config.get_default_config().update(
            input_dir="data", curation_file="my_curation.yaml", sixteen_s__min_alignment_length=250
        )
        path = self.tmpdir / "run.yaml"
        cfg.to_yaml(path)
        self.assertEqual(config.load_config_from_file(path), cfg)

    def test_json_round_trip(self):
        cfg = config.get_default_config().update(keep_intermediates=True)
        path = self.tmpdir / "run.json"
        cfg.to_json(path)
        self.assertEqual(config.load_config_from_file(path), cfg)

    def test_partial_yaml(self):
        path = self.tmpdir / "partial.yml"
        path.write_text("sixteen_s:\n  min_identity_pct: 99.0\n")
        cfg = config.load_config_from_file(path)
        self.assertEqual(cfg.sixteen_s.min_identity_pct, 99.0)
        self.assertEqual(cfg.sixteen_s.min_alignment_length, 100)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            config.load_config_from_file(self.tmpdir / "missing.yaml")

    def test_unsupported_format(self):
        path = self.tmpdir / "run.toml"
        path.write_text("")
        with self.assertRaises(ValueError):
            config.load_config_from_file(path)

    def test_create_template(self):
        path = self.tmpdir / "template.yaml"
        config.create_config_template(path)
        self.assertEqual(config.load_config_from_file(path), config.get_default_config())

    def test_create_template_bad_format(self):
        with self.assertRaises(ValueError):
            config.create_config_template(self.tmpdir / "template.ini", format="ini")


class TestEnvironment(unittest.TestCase):
    """Test environment variable overrides."""

    def test_overrides(self):
        env = {
            "CLUSTERNAMER_SIXTEEN_S__MIN_IDENTITY_PCT": "99.5",
            "CLUSTERNAMER_KEEP_INTERMEDIATES": "yes",
            "UNRELATED": "1",
        }
        with patch.dict(os.environ, env, clear=True):
            overrides = config.load_config_from_env()
        self.assertEqual(overrides, {
            "sixteen_s__min_identity_pct": 99.5,
            "keep_intermediates": True,
        })
        cfg = config.get_default_config().update(**overrides)
        self.assertEqual(cfg.sixteen_s.min_identity_pct, 99.5)
        self.assertTrue(cfg.keep_intermediates)

    def test_parse_env_value(self):
        self.assertIs(config._parse_env_value("false"), False)
        self.assertEqual(config._parse_env_value("200"), 200)
        self.assertEqual(config._parse_env_value("98.5"), 98.5)
        self.assertEqual(config._parse_env_value("results"), "results")


class TestValidateConfig(unittest.TestCase):

    def test_missing_input_dir(self):
        cfg = config.PipelineConfig(input_dir="/nonexistent/clusternamer/data")
        warnings = config.validate_config(cfg)
        self.assertTrue(any("Input directory not found" in w for w in warnings))

    def test_low_thresholds(self):
        cfg = config.get_default_config().update(
            sixteen_s__min_identity_pct=95.0, sixteen_s__min_alignment_length=50
        )
        warnings = config.validate_config(cfg)
        self.assertTrue(any("min_identity_pct" in w for w in warnings))
        self.assertTrue(any("min_alignment_length" in w for w in warnings))


if __name__ == '__main__':
    unittest.main()
