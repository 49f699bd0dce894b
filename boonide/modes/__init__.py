"""
BoonIDE mode system.

This module provides the two development modes' configuration bundles,
YAML loading of overrides, and the controller that owns the active mode.
"""

from .config import (
    ModeConfig,
    ModeConfigLoader,
    ModeOptions,
    SpecCentricConfig,
    VibeCodingConfig,
)
from .controller import ModeController

__all__ = [
    "ModeConfig",
    "ModeConfigLoader",
    "ModeOptions",
    "SpecCentricConfig",
    "VibeCodingConfig",
    "ModeController",
]
