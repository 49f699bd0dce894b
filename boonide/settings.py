"""
Orchestrator configuration management.

This module provides settings loading for the orchestrator from a YAML
file, environment variables, or defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .history import DEFAULT_HISTORY_CAPACITY
from .types import Mode

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class OrchestratorSettings:
    """Configuration for the BoonIDE orchestrator."""

    # Execution
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    task_timeout: float = 300.0  # seconds
    default_agents: List[str] = field(default_factory=lambda: ["context", "analysis"])

    # Modes and learning
    initial_mode: Optional[Mode] = None  # None = preferred mode from preferences
    learning_enabled: bool = True
    preferences: Dict[str, Any] = field(default_factory=dict)

    # Paths
    project_root: Optional[Path] = None
    global_config_dir: Path = field(default_factory=lambda: Path.home() / ".boonide")

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_file(cls, path: Path) -> "OrchestratorSettings":
        """
        Load settings from a YAML file.

        The file may also carry a ``modeConfig`` section; that section is
        read separately by ModeConfigLoader.

        Raises:
            FileNotFoundError: If the file doesn't exist
            yaml.YAMLError: If the file is invalid YAML
            ValueError: If the top level is not a mapping
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")

        config = cls()

        if "orchestrator" in data:
            section = data["orchestrator"] or {}
            try:
                config.history_capacity = int(section.get("history_capacity", config.history_capacity))
                config.task_timeout = float(section.get("task_timeout", config.task_timeout))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid orchestrator settings in {path}: {e}") from e
            config.default_agents = list(section.get("default_agents", config.default_agents))
            if section.get("initial_mode"):
                config.initial_mode = Mode(section["initial_mode"])
            config.learning_enabled = section.get("learning_enabled", config.learning_enabled)

        if "preferences" in data:
            config.preferences = dict(data["preferences"] or {})

        if "paths" in data:
            paths = data["paths"] or {}
            if paths.get("project_root"):
                config.project_root = Path(paths["project_root"]).expanduser()
            if paths.get("global_config_dir"):
                config.global_config_dir = Path(paths["global_config_dir"]).expanduser()

        if "logging" in data:
            log_config = data["logging"] or {}
            config.log_level = log_config.get("level", config.log_level)
            config.log_format = log_config.get("format", config.log_format)

        logger.info(f"Loaded settings from {path}")
        return config

    @classmethod
    def from_env(cls) -> "OrchestratorSettings":
        """
        Load settings from environment variables.

        Environment variables:
        - BOONIDE_HISTORY_CAPACITY: Number of task results retained
        - BOONIDE_TASK_TIMEOUT: Unit-of-work timeout in seconds
        - BOONIDE_MODE: Initial mode (vibecoding or spec-centric)
        - BOONIDE_PROJECT_ROOT: Project root directory
        - BOONIDE_CONFIG_DIR: Global config directory (default: ~/.boonide)
        - BOONIDE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        config = cls()

        if os.getenv("BOONIDE_HISTORY_CAPACITY"):
            try:
                config.history_capacity = int(os.getenv("BOONIDE_HISTORY_CAPACITY"))
            except ValueError:
                logger.warning("Invalid BOONIDE_HISTORY_CAPACITY value, using default")

        if os.getenv("BOONIDE_TASK_TIMEOUT"):
            try:
                config.task_timeout = float(os.getenv("BOONIDE_TASK_TIMEOUT"))
            except ValueError:
                logger.warning("Invalid BOONIDE_TASK_TIMEOUT value, using default")

        if os.getenv("BOONIDE_MODE"):
            try:
                config.initial_mode = Mode(os.getenv("BOONIDE_MODE"))
            except ValueError:
                logger.warning("Invalid BOONIDE_MODE value, using preferred mode")

        if os.getenv("BOONIDE_PROJECT_ROOT"):
            config.project_root = Path(os.getenv("BOONIDE_PROJECT_ROOT")).expanduser()

        if os.getenv("BOONIDE_CONFIG_DIR"):
            config.global_config_dir = Path(os.getenv("BOONIDE_CONFIG_DIR")).expanduser()

        if os.getenv("BOONIDE_LOG_LEVEL"):
            config.log_level = os.getenv("BOONIDE_LOG_LEVEL")

        return config

    def validate(self) -> None:
        """
        Validate settings values.

        Raises:
            ValueError: If a value is out of range
        """
        if self.history_capacity <= 0:
            raise ValueError("history_capacity must be positive")

        if self.task_timeout <= 0:
            raise ValueError("task_timeout must be positive")

        if not self.default_agents:
            raise ValueError("default_agents must not be empty")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        logger.debug("Settings validated successfully")


def load_settings(
    config_file: Optional[Path] = None,
    use_env: bool = True,
) -> OrchestratorSettings:
    """
    Load settings from file and/or environment.

    Priority order:
    1. Config file (if provided and present)
    2. Environment variables (if use_env=True)
    3. Defaults

    Returns:
        Loaded and validated OrchestratorSettings
    """
    if config_file and config_file.exists():
        config = OrchestratorSettings.from_file(config_file)
    elif use_env:
        config = OrchestratorSettings.from_env()
    else:
        config = OrchestratorSettings()

    config.validate()
    return config
