"""
Unit tests for Configuration loading and validation.
"""

import json

import pytest
import yaml

from perf_aggregator.core.config import (
    DEFAULT_COLLECTORS,
    Configuration,
    LoggingSettings,
    StorageSettings,
)


class TestConfigurationDefaults:
    """Test default values and validation."""

    def test_default_for_project(self):
        config = Configuration.default_for("my-app")

        assert config.project_name == "my-app"
        assert config.enabled_collectors == DEFAULT_COLLECTORS
        assert config.storage.type == "memory"
        assert config.storage.retention_days == 90
        assert config.baseline_commit is None
        assert config.default_time_range_days == 30

    def test_empty_project_name_rejected(self):
        with pytest.raises(ValueError, match="project_name"):
            Configuration(project_name="")

    def test_unknown_storage_type_rejected(self):
        with pytest.raises(ValueError, match="storage type"):
            StorageSettings(type="cassandra")

    def test_negative_retention_rejected(self):
        with pytest.raises(ValueError, match="retention_days"):
            StorageSettings(retention_days=-1)

    def test_nested_dicts_are_converted(self):
        config = Configuration(
            project_name="app",
            storage={"type": "file", "path": "/tmp/perf", "retention_days": 7},
            logging={"level": "DEBUG"},
        )
        assert isinstance(config.storage, StorageSettings)
        assert config.storage.retention_days == 7
        assert isinstance(config.logging, LoggingSettings)
        assert config.logging.level == "DEBUG"


class TestConfigurationFiles:
    """Test YAML/JSON loading and saving."""

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "perf.yaml"
        path.write_text(yaml.safe_dump({
            "project_name": "app",
            "enabled_collectors": ["buildTime"],
            "baseline_commit": "abc123",
            "storage": {"type": "file", "path": "./perf-data"},
            "collectors": {"buildTime": {"timeout": 120}},
        }))

        config = Configuration.from_yaml(str(path))

        assert config.enabled_collectors == ["buildTime"]
        assert config.baseline_commit == "abc123"
        assert config.storage.path == "./perf-data"
        assert config.collector_options("buildTime") == {"timeout": 120}
        assert config.collector_options("tests") == {}

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "perf.json"
        path.write_text(json.dumps({"project_name": "app", "enabled_collectors": ["system"]}))

        config = Configuration.from_yaml(str(path))

        assert config.project_name == "app"
        assert config.enabled_collectors == ["system"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Configuration.from_yaml(str(tmp_path / "missing.yaml"))

    def test_unknown_keys_ignored(self):
        config = Configuration.from_dict({"project_name": "app", "windsurf": {"api_key": "x"}})
        assert config.project_name == "app"

    def test_to_yaml_roundtrip(self, tmp_path):
        original = Configuration(
            project_name="app",
            enabled_collectors=["tests", "system"],
            baseline_commit="cafe",
            storage=StorageSettings(type="file", path="/data", retention_days=14),
        )
        path = tmp_path / "nested" / "perf.yaml"
        original.to_yaml(str(path))

        loaded = Configuration.from_yaml(str(path))

        assert loaded == original
