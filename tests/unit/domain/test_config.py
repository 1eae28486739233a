"""Tests for ConfigurationLoader and ConfigFileLoader."""

import unittest
from pathlib import Path

import pytest

from domain_conformance.domain.config import ConfigurationError, ConfigurationLoader
from domain_conformance.domain.entities import Severity
from domain_conformance.infrastructure.config_file_loader import ConfigFileLoader


class TestConfigurationLoader(unittest.TestCase):
    def test_defaults(self) -> None:
        loader = ConfigurationLoader({})

        self.assertEqual(loader.lineage_roots, ["EntityBase"])
        self.assertEqual(loader.execution_context_type, "ExecutionContext")
        self.assertEqual(loader.max_abstract_depth, 1)
        self.assertEqual(loader.min_severity, Severity.ERROR)
        self.assertEqual(loader.workers, 0)
        self.assertEqual(loader.exclude_paths, [])
        self.assertEqual(loader.report_path, "architecture-report.json")
        self.assertEqual(loader.pending_dir, ".conformance/pending")

    def test_values_read_from_section(self) -> None:
        loader = ConfigurationLoader(
            {
                "lineage_roots": ["AggregateBase", "EntityBase"],
                "min_severity": "Warning",
                "workers": 4,
                "exclude_paths": "tests/fixtures",
                "disabled_rules": ["DE046"],
            }
        )

        self.assertEqual(loader.lineage_roots, ["AggregateBase", "EntityBase"])
        self.assertEqual(loader.min_severity, Severity.WARNING)
        self.assertEqual(loader.workers, 4)
        self.assertEqual(loader.exclude_paths, ["tests/fixtures"])
        self.assertEqual(loader.disabled_rules, ["DE046"])

    def test_invalid_values_fall_back_with_warning(self) -> None:
        loader = ConfigurationLoader(
            {"max_abstract_depth": -1, "workers": True, "min_severity": "fatal", "report_path": ""}
        )

        with self.assertLogs(level="WARNING") as logs:
            self.assertEqual(loader.max_abstract_depth, 1)
            self.assertEqual(loader.workers, 0)
            self.assertEqual(loader.min_severity, Severity.ERROR)
            self.assertEqual(loader.report_path, "architecture-report.json")

        self.assertEqual(len(logs.output), 4)
        self.assertTrue(all("Configuration Warning" in line for line in logs.output))

    def test_severity_overrides_skip_unknown_values(self) -> None:
        loader = ConfigurationLoader({"severity_overrides": {"DE046": "info", "DE001": "loud"}})

        with self.assertLogs(level="WARNING"):
            overrides = loader.severity_overrides

        self.assertEqual(overrides, {"DE046": Severity.INFO})

    def test_conventions_carry_configured_values(self) -> None:
        loader = ConfigurationLoader(
            {
                "execution_context_type": "RequestContext",
                "max_abstract_depth": 2,
                "metadata_suffixes": ["max_words"],
            }
        )
        conventions = loader.conventions

        self.assertEqual(conventions.execution_context_type, "RequestContext")
        self.assertEqual(conventions.max_abstract_depth, 2)
        self.assertIn("_max_words", conventions.metadata_suffixes)
        self.assertIn("_max_length", conventions.metadata_suffixes)

    def test_parse_severity_rejects_unknown_names(self) -> None:
        self.assertEqual(ConfigurationLoader.parse_severity(" INFO "), Severity.INFO)
        with self.assertRaises(ConfigurationError):
            ConfigurationLoader.parse_severity("critical")


class TestConfigFileLoader:
    """ConfigFileLoader reads the nearest pyproject.toml."""

    def test_walks_up_to_nearest_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.domain-conformance]\nmin_severity = "warning"\n\n[tool.other]\nkey = 1\n'
        )
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)

        config, tool = ConfigFileLoader.load_config_from_fs(str(nested))

        assert config == {"min_severity": "warning"}
        assert tool["other"] == {"key": 1}

    def test_file_start_uses_its_directory(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.domain-conformance]\nworkers = 2\n")
        module = tmp_path / "order.py"
        module.write_text("")

        config, _ = ConfigFileLoader.load_config_from_fs(str(module))

        assert config == {"workers": 2}

    def test_missing_section_gives_empty_config(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')

        assert ConfigFileLoader.load_config_from_fs(str(tmp_path)) == ({}, {})

    def test_invalid_toml_logged(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.domain-conformance\n")

        with caplog.at_level("WARNING", logger="domain_conformance.infrastructure.config_file_loader"):
            result = ConfigFileLoader.load_config_from_fs(str(tmp_path))

        assert result == ({}, {})
        assert "Could not read" in caplog.text


if __name__ == "__main__":
    unittest.main()
