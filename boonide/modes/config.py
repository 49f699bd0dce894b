"""
Mode configuration bundles with YAML loading and validation.

This module provides the per-mode option bundles (VibeCodingConfig and
SpecCentricConfig), the combined ModeConfig, and ModeConfigLoader for
reading overrides from YAML files with proper precedence
(defaults < global < project).
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import InvalidConfig
from ..types import Mode

logger = logging.getLogger(__name__)


class VibeCodingConfig(BaseModel):
    """Options for the flow-oriented Vibecoding mode."""

    auto_suggestions: bool = Field(default=True, alias="autoSuggestions")
    suggestions_delay: int = Field(default=500, ge=0, alias="suggestionsDelay", description="Milliseconds")
    proactive_refactoring: bool = Field(default=True, alias="proactiveRefactoring")
    context_awareness: int = Field(default=80, ge=0, le=100, alias="contextAwareness")
    flow_preservation: bool = Field(default=True, alias="flowPreservation")
    minimum_interruption: bool = Field(default=True, alias="minimumInterruption")

    class Config:
        populate_by_name = True
        extra = "forbid"


class SpecCentricConfig(BaseModel):
    """Options for the specification-driven SpecCentric mode."""

    requirement_validation: bool = Field(default=True, alias="requirementValidation")
    test_driven_development: bool = Field(default=True, alias="testDrivenDevelopment")
    architecture_compliance: bool = Field(default=True, alias="architectureCompliance")
    formal_verification: bool = Field(default=False, alias="formalVerification")
    documentation_generation: bool = Field(default=True, alias="documentationGeneration")
    specification_tracking: bool = Field(default=True, alias="specificationTracking")

    class Config:
        populate_by_name = True
        extra = "forbid"


ModeOptions = Union[VibeCodingConfig, SpecCentricConfig]


class ModeConfig(BaseModel):
    """Both mode bundles. Exactly one of them is active at a time."""

    vibecoding: VibeCodingConfig = Field(default_factory=VibeCodingConfig)
    spec_centric: SpecCentricConfig = Field(default_factory=SpecCentricConfig, alias="specCentric")

    class Config:
        populate_by_name = True
        extra = "forbid"

    def for_mode(self, mode: Mode) -> ModeOptions:
        """Get the bundle belonging to a mode."""
        if Mode(mode) == Mode.VIBECODING:
            return self.vibecoding
        return self.spec_centric

    def merged(self, partial: Union["ModeConfig", Dict[str, Any]]) -> "ModeConfig":
        """
        Merge a partial update into a copy of this config.

        Args:
            partial: Mapping with optional "vibecoding" / "specCentric" sections.
                     Option names may be camelCase or snake_case.

        Returns:
            New validated ModeConfig; self is not modified

        Raises:
            InvalidConfig: On unknown sections/options or out-of-range values
        """
        if isinstance(partial, ModeConfig):
            partial = partial.model_dump(by_alias=True)
        if not isinstance(partial, dict):
            raise InvalidConfig(f"Config update must be a mapping, got {type(partial).__name__}")

        data = self.model_dump(by_alias=True)
        for key, section in partial.items():
            if key in ("vibecoding", "vibeCoding", "vibe_coding"):
                target, model = "vibecoding", VibeCodingConfig
            elif key in ("specCentric", "spec_centric"):
                target, model = "specCentric", SpecCentricConfig
            else:
                raise InvalidConfig(f"Unknown config section '{key}'")

            if section is None:
                continue
            if isinstance(section, BaseModel):
                section = section.model_dump(by_alias=True)
            if not isinstance(section, dict):
                raise InvalidConfig(f"Config section '{key}' must be a mapping")
            data[target].update(normalize_option_keys(model, section))

        try:
            return ModeConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfig(f"Invalid mode config: {_describe(e)}", e.errors()) from e


def normalize_option_keys(model: Type[BaseModel], values: Dict[str, Any]) -> Dict[str, Any]:
    """Map snake_case option names to their camelCase aliases."""
    aliases = {name: info.alias or name for name, info in model.model_fields.items()}
    known = set(aliases.values())
    normalized = {}
    for key, value in values.items():
        if key in aliases:
            normalized[aliases[key]] = value
        elif key in known:
            normalized[key] = value
        else:
            raise InvalidConfig(f"Unknown option '{key}' for {model.__name__}")
    return normalized


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class ModeConfigLoader:
    """
    Loads mode configuration overrides from YAML files.

    Supports loading from:
    - Global configuration (~/.boonide/config.yaml)
    - Project configuration (.boonide.yaml in project root)

    Precedence: project > global > defaults

    The YAML files should have format:
    ```yaml
    modeConfig:
      vibecoding:
        contextAwareness: 90
      specCentric:
        formalVerification: true
    ```
    """

    GLOBAL_CONFIG_FILENAME = "config.yaml"
    PROJECT_CONFIG_FILENAME = ".boonide.yaml"
    SECTION = "modeConfig"

    def __init__(self, global_config_dir: Optional[Path] = None):
        """
        Initialize the loader.

        Args:
            global_config_dir: Path to global config directory (defaults to ~/.boonide)
        """
        if global_config_dir is None:
            global_config_dir = Path.home() / ".boonide"
        self.global_config_dir = global_config_dir

    def load_from_yaml(self, file_path: Path) -> Optional[Dict[str, Any]]:
        """
        Read the mode config section from a YAML file.

        Returns:
            The raw partial config, or None if the file is missing or unusable
        """
        if not file_path.exists():
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()

            # Strip BOM if present
            if content.startswith("\ufeff"):
                content = content[1:]

            data = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error reading config file {file_path}: {e}")
            return None

        if not data or not isinstance(data, dict):
            return None

        section = data.get(self.SECTION)
        if section is None:
            return None
        if not isinstance(section, dict):
            logger.warning(f"Ignoring '{self.SECTION}' in {file_path}: expected a mapping")
            return None
        return section

    def load(
        self,
        project_root: Optional[Path] = None,
        base: Optional[ModeConfig] = None,
    ) -> ModeConfig:
        """
        Load and merge overrides from all sources.

        Args:
            project_root: Root directory of the current project
            base: Starting config (defaults to ModeConfig())

        Returns:
            Merged config with precedence: project > global > base
        """
        config = base if base is not None else ModeConfig()

        paths = [self.global_config_dir / self.GLOBAL_CONFIG_FILENAME]
        if project_root:
            paths.append(project_root / self.PROJECT_CONFIG_FILENAME)

        for path in paths:
            partial = self.load_from_yaml(path)
            if partial is None:
                continue
            try:
                config = config.merged(partial)
                logger.info(f"Applied mode config overrides from {path}")
            except InvalidConfig as e:
                logger.warning(f"Skipping mode config in {path}: {e}")

        return config

    def save_to_yaml(self, config: ModeConfig, file_path: Path) -> None:
        """
        Save a mode config to a YAML file, preserving other top-level keys.

        Args:
            config: Config to save
            file_path: Path to save to
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data: Dict[str, Any] = {}
        if file_path.exists():
            with open(file_path, "r", encoding="utf-8") as f:
                existing = yaml.safe_load(f)
            if isinstance(existing, dict):
                data = existing

        data[self.SECTION] = config.model_dump(by_alias=True)
        with open(file_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
