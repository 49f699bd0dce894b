"""
Unit tests for orchestrator settings.

Tests settings loading from files, environment variables, and defaults.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from boonide.settings import OrchestratorSettings, load_settings
from boonide.types import Mode


class TestOrchestratorSettings:
    """Test OrchestratorSettings class."""

    def test_default_settings(self):
        """Test default configuration values."""
        settings = OrchestratorSettings()

        assert settings.history_capacity == 100
        assert settings.task_timeout == 300.0
        assert settings.default_agents == ["context", "analysis"]
        assert settings.initial_mode is None
        assert settings.learning_enabled is True
        assert settings.log_level == "INFO"
        assert settings.global_config_dir == Path.home() / ".boonide"

    def test_from_file(self, tmp_path):
        """Test loading every section from a YAML file."""
        config_path = tmp_path / "boonide.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "orchestrator": {
                        "history_capacity": 20,
                        "task_timeout": 12.5,
                        "default_agents": ["generation"],
                        "initial_mode": "spec-centric",
                        "learning_enabled": False,
                    },
                    "preferences": {"customPrompts": ["be terse"]},
                    "paths": {"project_root": str(tmp_path), "global_config_dir": str(tmp_path / "g")},
                    "logging": {"level": "DEBUG"},
                }
            ),
            encoding="utf-8",
        )

        settings = OrchestratorSettings.from_file(config_path)

        assert settings.history_capacity == 20
        assert settings.task_timeout == 12.5
        assert settings.default_agents == ["generation"]
        assert settings.initial_mode == Mode.SPEC_CENTRIC
        assert settings.learning_enabled is False
        assert settings.preferences == {"customPrompts": ["be terse"]}
        assert settings.project_root == tmp_path
        assert settings.global_config_dir == tmp_path / "g"
        assert settings.log_level == "DEBUG"

    def test_from_empty_file(self, tmp_path):
        """Test an empty file yields defaults."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("", encoding="utf-8")

        settings = OrchestratorSettings.from_file(config_path)

        assert settings.history_capacity == 100

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            OrchestratorSettings.from_file(tmp_path / "missing.yaml")

    def test_from_file_not_a_mapping(self, tmp_path):
        config_path = tmp_path / "list.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            OrchestratorSettings.from_file(config_path)

    def test_from_file_coerces_numbers(self, tmp_path):
        """Test numeric strings from YAML are converted."""
        config_path = tmp_path / "boonide.yaml"
        config_path.write_text(
            yaml.dump({"orchestrator": {"history_capacity": "25", "task_timeout": "4.5"}}),
            encoding="utf-8",
        )

        settings = OrchestratorSettings.from_file(config_path)

        assert settings.history_capacity == 25
        assert settings.task_timeout == 4.5

    @pytest.mark.parametrize("value", ["abc", None, [1, 2]])
    def test_from_file_rejects_non_numeric(self, tmp_path, value):
        """Test non-numeric values raise ValueError instead of TypeError."""
        config_path = tmp_path / "boonide.yaml"
        config_path.write_text(yaml.dump({"orchestrator": {"history_capacity": value}}), encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid orchestrator settings"):
            OrchestratorSettings.from_file(config_path)

    def test_from_env(self, tmp_path):
        """Test loading from environment variables."""
        env = {
            "BOONIDE_HISTORY_CAPACITY": "50",
            "BOONIDE_TASK_TIMEOUT": "30",
            "BOONIDE_MODE": "spec-centric",
            "BOONIDE_PROJECT_ROOT": str(tmp_path),
            "BOONIDE_CONFIG_DIR": str(tmp_path / "cfg"),
            "BOONIDE_LOG_LEVEL": "WARNING",
        }
        with patch.dict(os.environ, env):
            settings = OrchestratorSettings.from_env()

        assert settings.history_capacity == 50
        assert settings.task_timeout == 30.0
        assert settings.initial_mode == Mode.SPEC_CENTRIC
        assert settings.project_root == tmp_path
        assert settings.global_config_dir == tmp_path / "cfg"
        assert settings.log_level == "WARNING"

    def test_from_env_invalid_values(self):
        """Test invalid values fall back to defaults."""
        env = {
            "BOONIDE_HISTORY_CAPACITY": "lots",
            "BOONIDE_TASK_TIMEOUT": "soon",
            "BOONIDE_MODE": "waterfall",
        }
        with patch.dict(os.environ, env):
            settings = OrchestratorSettings.from_env()

        assert settings.history_capacity == 100
        assert settings.task_timeout == 300.0
        assert settings.initial_mode is None


class TestValidation:
    """Test settings validation."""

    def test_valid_defaults(self):
        OrchestratorSettings().validate()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("history_capacity", 0),
            ("task_timeout", -1),
            ("default_agents", []),
            ("log_level", "LOUD"),
        ],
    )
    def test_invalid_values(self, field, value):
        settings = OrchestratorSettings()
        setattr(settings, field, value)

        with pytest.raises(ValueError):
            settings.validate()


class TestLoadSettings:
    """Test load_settings helper."""

    def test_file_takes_priority(self, tmp_path):
        config_path = tmp_path / "boonide.yaml"
        config_path.write_text(yaml.dump({"orchestrator": {"task_timeout": 7}}), encoding="utf-8")

        with patch.dict(os.environ, {"BOONIDE_TASK_TIMEOUT": "99"}):
            settings = load_settings(config_file=config_path)

        assert settings.task_timeout == 7

    def test_env_used_without_file(self, tmp_path):
        with patch.dict(os.environ, {"BOONIDE_TASK_TIMEOUT": "99"}):
            settings = load_settings(config_file=tmp_path / "missing.yaml")

        assert settings.task_timeout == 99.0

    def test_defaults_without_env(self):
        with patch.dict(os.environ, {"BOONIDE_TASK_TIMEOUT": "99"}):
            settings = load_settings(use_env=False)

        assert settings.task_timeout == 300.0

    def test_invalid_file_values(self, tmp_path):
        config_path = tmp_path / "boonide.yaml"
        config_path.write_text(yaml.dump({"orchestrator": {"history_capacity": -5}}), encoding="utf-8")

        with pytest.raises(ValueError):
            load_settings(config_file=config_path)
