"""Tests for ModeController."""

import pytest

from boonide.errors import InvalidConfig
from boonide.modes.config import ModeConfig, SpecCentricConfig
from boonide.modes.controller import ModeController
from boonide.types import Mode


class TestModeControllerInit:
    """Test controller construction."""

    def test_defaults(self):
        controller = ModeController()
        assert controller.get_mode() == Mode.VIBECODING
        assert controller.get_config() == ModeConfig()

    def test_initial_mode_from_string(self):
        controller = ModeController("spec-centric")
        assert controller.mode == Mode.SPEC_CENTRIC

    def test_invalid_initial_mode(self):
        with pytest.raises(InvalidConfig, match="Available modes"):
            ModeController("waterfall")

    def test_config_is_copied(self):
        config = ModeConfig()
        controller = ModeController(config=config)
        config.vibecoding.context_awareness = 10
        assert controller.get_config().vibecoding.context_awareness == 80


@pytest.mark.asyncio
class TestModeSwitching:
    """Test set_mode and its notification."""

    async def test_set_mode_notifies(self):
        """Test switching fires the new mode exactly once."""
        controller = ModeController()
        received = []
        controller.on_mode_changed.subscribe(received.append)

        await controller.set_mode(Mode.SPEC_CENTRIC)
        await controller.on_mode_changed.flush()

        assert controller.get_mode() == Mode.SPEC_CENTRIC
        assert received == [Mode.SPEC_CENTRIC]

    async def test_set_same_mode(self):
        """Test setting the current mode keeps it and still notifies."""
        controller = ModeController()
        received = []
        controller.on_mode_changed.subscribe(received.append)

        await controller.set_mode(Mode.VIBECODING)
        await controller.on_mode_changed.flush()

        assert controller.get_mode() == Mode.VIBECODING
        assert received == [Mode.VIBECODING]

    async def test_set_invalid_mode(self):
        controller = ModeController()
        with pytest.raises(InvalidConfig):
            await controller.set_mode("waterfall")
        assert controller.get_mode() == Mode.VIBECODING

    async def test_active_options_follow_mode(self):
        controller = ModeController()
        await controller.set_mode(Mode.SPEC_CENTRIC)
        assert isinstance(controller.get_active_options(), SpecCentricConfig)


@pytest.mark.asyncio
class TestConfigUpdates:
    """Test update_config."""

    async def test_update_changes_one_option(self):
        controller = ModeController()
        received = []
        controller.on_config_changed.subscribe(received.append)

        updated = await controller.update_config({"vibecoding": {"contextAwareness": 95}})
        await controller.on_config_changed.flush()

        assert updated.vibecoding.context_awareness == 95
        assert controller.get_config().vibecoding.suggestions_delay == 500
        assert received == [updated]

    async def test_invalid_update_keeps_config(self):
        """Test a rejected update leaves the configuration untouched and silent."""
        controller = ModeController()
        received = []
        controller.on_config_changed.subscribe(received.append)

        with pytest.raises(InvalidConfig):
            await controller.update_config({"vibecoding": {"contextAwareness": 150}})
        await controller.on_config_changed.flush()

        assert controller.get_config().vibecoding.context_awareness == 80
        assert received == []

    async def test_get_config_returns_copy(self):
        controller = ModeController()
        snapshot = controller.get_config()
        snapshot.spec_centric.formal_verification = True
        assert controller.get_config().spec_centric.formal_verification is False
