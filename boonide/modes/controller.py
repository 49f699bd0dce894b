"""
Mode management.

This module provides the ModeController which owns the active mode and
the two mode configuration bundles, and notifies subscribers when either
changes.
"""

import logging
from typing import Any, Dict, Optional, Union

from ..errors import InvalidConfig
from ..events import Emitter
from ..types import Mode
from .config import ModeConfig, ModeOptions

logger = logging.getLogger(__name__)


class ModeController:
    """
    Owns the current operating mode and its configuration.

    Switching mode never touches agents, history or in-flight tasks;
    tasks keep the mode they were submitted under.
    """

    def __init__(
        self,
        mode: Union[Mode, str] = Mode.VIBECODING,
        config: Optional[ModeConfig] = None,
    ):
        """
        Initialize the controller.

        Args:
            mode: Initial mode
            config: Initial configuration (defaults to ModeConfig())
        """
        self._mode = _coerce_mode(mode)
        self._config = config.model_copy(deep=True) if config is not None else ModeConfig()

        self.on_mode_changed: Emitter[Mode] = Emitter("mode")
        self.on_config_changed: Emitter[ModeConfig] = Emitter("mode-config")

    @property
    def mode(self) -> Mode:
        return self._mode

    def get_mode(self) -> Mode:
        """Get the active mode."""
        return self._mode

    async def set_mode(self, mode: Union[Mode, str]) -> None:
        """
        Switch the active mode and notify subscribers.

        Args:
            mode: New mode (a Mode or its string value)

        Raises:
            InvalidConfig: If a string does not name a mode
        """
        new_mode = _coerce_mode(mode)
        old_mode = self._mode
        self._mode = new_mode

        logger.info(f"Mode switched from {old_mode.value} to {new_mode.value}")
        self.on_mode_changed.fire(new_mode)

    def get_config(self) -> ModeConfig:
        """Get a copy of both configuration bundles."""
        return self._config.model_copy(deep=True)

    def get_active_options(self, mode: Optional[Mode] = None) -> ModeOptions:
        """Get a copy of the bundle for a mode (defaults to the active mode)."""
        return self._config.for_mode(mode or self._mode).model_copy(deep=True)

    async def update_config(self, partial: Union[ModeConfig, Dict[str, Any]]) -> ModeConfig:
        """
        Merge a partial update into the configuration.

        Args:
            partial: Mapping with optional "vibecoding" / "specCentric" sections

        Returns:
            Copy of the new configuration

        Raises:
            InvalidConfig: If any value is out of range or unknown; the prior
                           configuration is left unchanged
        """
        try:
            updated = self._config.merged(partial)
        except InvalidConfig as e:
            logger.warning(f"Rejected mode config update: {e}")
            raise

        self._config = updated
        logger.debug("Mode config updated")
        self.on_config_changed.fire(self.get_config())
        return self.get_config()


def _coerce_mode(mode: Union[Mode, str]) -> Mode:
    try:
        return Mode(mode)
    except ValueError as e:
        valid = ", ".join(m.value for m in Mode)
        raise InvalidConfig(f"Invalid mode '{mode}'. Available modes: {valid}") from e
