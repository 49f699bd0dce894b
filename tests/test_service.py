"""Integration tests for BoonIDEService."""

import asyncio

import pytest
import yaml

from boonide.errors import InvalidConfig, InvalidTask
from boonide.interfaces import OrchestratorAPI
from boonide.service import BoonIDEService
from boonide.settings import OrchestratorSettings
from boonide.types import AgentStatus, DevelopmentTask, Mode, UserInteraction

from conftest import GatedWork, failing_work, instant_work


class TestServiceConstruction:
    """Test wiring from settings."""

    def test_implements_protocol(self, service):
        assert isinstance(service, OrchestratorAPI)

    def test_defaults(self, service):
        assert service.current_mode == Mode.VIBECODING
        assert len(service.registry) == 5
        assert service.get_task_history() == []
        assert service.get_mode_config().vibecoding.context_awareness == 80

    def test_initial_mode_setting(self, tmp_path):
        settings = OrchestratorSettings(global_config_dir=tmp_path, initial_mode=Mode.SPEC_CENTRIC)
        assert BoonIDEService(settings).current_mode == Mode.SPEC_CENTRIC

    def test_preferred_mode_used_without_initial_mode(self, tmp_path):
        settings = OrchestratorSettings(
            global_config_dir=tmp_path, preferences={"preferredMode": "spec-centric"}
        )
        assert BoonIDEService(settings).current_mode == Mode.SPEC_CENTRIC

    def test_learning_flag_from_settings(self, tmp_path):
        settings = OrchestratorSettings(global_config_dir=tmp_path, learning_enabled=False)
        assert BoonIDEService(settings).get_user_preferences().learning_enabled is False

    def test_invalid_preferences(self, tmp_path):
        settings = OrchestratorSettings(global_config_dir=tmp_path, preferences={"bogus": 1})
        with pytest.raises(InvalidConfig):
            BoonIDEService(settings)

    def test_mode_config_from_disk(self, tmp_path):
        """Test YAML overrides are applied on top of preference overrides."""
        project = tmp_path / "project"
        project.mkdir()
        (project / ".boonide.yaml").write_text(
            yaml.dump({"modeConfig": {"vibecoding": {"contextAwareness": 90}}}), encoding="utf-8"
        )
        settings = OrchestratorSettings(
            global_config_dir=tmp_path / "global",
            project_root=project,
            preferences={"vibeCodingPrefs": {"suggestionsDelay": 250}},
        )

        config = BoonIDEService(settings).get_mode_config()

        assert config.vibecoding.context_awareness == 90
        assert config.vibecoding.suggestions_delay == 250


@pytest.mark.asyncio
class TestServiceModes:
    """Test mode operations through the service."""

    async def test_set_mode_notifies(self, service):
        received = []
        subscription = service.on_mode_changed.subscribe(received.append)

        await service.set_mode(Mode.SPEC_CENTRIC)
        await service.on_mode_changed.flush()

        assert service.current_mode == Mode.SPEC_CENTRIC
        assert received == [Mode.SPEC_CENTRIC]
        subscription.dispose()

    async def test_update_mode_config(self, service):
        received = []
        service.on_mode_config_changed.subscribe(received.append)

        await service.update_mode_config({"vibecoding": {"contextAwareness": 95}})
        await service.on_mode_config_changed.flush()

        assert service.get_mode_config().vibecoding.context_awareness == 95
        assert len(received) == 1

    async def test_update_mode_config_invalid(self, service):
        with pytest.raises(InvalidConfig):
            await service.update_mode_config({"vibecoding": {"contextAwareness": 150}})
        assert service.get_mode_config().vibecoding.context_awareness == 80

    async def test_mode_switch_does_not_affect_running_task(self, settings):
        """Test a running task keeps the mode it was submitted under."""
        work = GatedWork()
        service = BoonIDEService(settings, work=work)
        running = asyncio.create_task(
            service.execute_task(DevelopmentTask(prompt="p", required_agents=["generation"]))
        )
        await work.started.wait()

        await service.set_mode(Mode.SPEC_CENTRIC)
        work.open()
        result = await running

        assert result.mode == Mode.VIBECODING
        assert work.contexts[0].mode == Mode.VIBECODING


@pytest.mark.asyncio
class TestServiceAgents:
    """Test agent administration."""

    async def test_active_agents(self, service):
        """Test only non-idle agents are reported as active."""
        assert {a.id for a in service.get_active_agents()} == {"context", "analysis"}

    async def test_get_agent_by_id(self, service):
        assert service.get_agent_by_id("generation").name == "Generation Agent"
        assert service.get_agent_by_id("ghost") is None

    async def test_start_and_stop(self, service):
        assert await service.start_agent("communication") is True
        assert service.get_agent_by_id("communication").status == AgentStatus.ACTIVE

        assert await service.stop_agent("communication") is True
        assert service.get_agent_by_id("communication").status == AgentStatus.IDLE

    async def test_unknown_agent_admin(self, service):
        assert await service.start_agent("ghost") is False
        assert await service.stop_agent("ghost") is False
        assert await service.restart_agent("ghost") is False

    async def test_restart_after_error(self, settings):
        """Test a restart clears the error state and the CPU gauge."""
        service = BoonIDEService(settings, work=failing_work)
        await service.execute_task(DevelopmentTask(prompt="p", required_agents=["analysis"]))
        assert service.get_agent_by_id("analysis").status == AgentStatus.ERROR

        assert await service.restart_agent("analysis") is True

        agent = service.get_agent_by_id("analysis")
        assert agent.status == AgentStatus.IDLE
        assert agent.cpu_usage == 0

    async def test_stop_busy_agent_refused(self, settings):
        work = GatedWork()
        service = BoonIDEService(settings, work=work)
        running = asyncio.create_task(
            service.execute_task(DevelopmentTask(prompt="p", required_agents=["generation"]))
        )
        await work.started.wait()

        assert await service.stop_agent("generation") is False

        work.open()
        await running
        assert service.get_agent_by_id("generation").status == AgentStatus.ACTIVE

    async def test_status_notifications(self, service):
        changes = []
        service.on_agent_status_changed.subscribe(changes.append)

        await service.execute_task(DevelopmentTask(prompt="p", required_agents=["generation"]))
        await service.on_agent_status_changed.flush()

        assert [(c.agent_id, c.status) for c in changes] == [
            ("generation", AgentStatus.BUSY),
            ("generation", AgentStatus.ACTIVE),
        ]


@pytest.mark.asyncio
class TestServiceTasks:
    """Test task execution through the service."""

    async def test_execute_prompt_uses_default_agents(self, service):
        result = await service.execute_prompt("explain this module")

        assert result.success is True
        assert result.agents_used == ["analysis", "context"]
        assert service.get_task_history() == [result]

    async def test_execute_prompt_with_mode(self, service):
        result = await service.execute_prompt("verify", mode=Mode.SPEC_CENTRIC)
        assert result.mode == Mode.SPEC_CENTRIC

    async def test_execute_invalid_task(self, service):
        with pytest.raises(InvalidTask):
            await service.execute_task({"prompt": "p", "requiredAgents": ["ghost"]})

    async def test_cancel_task(self, settings):
        work = GatedWork()
        service = BoonIDEService(settings, work=work)
        running = asyncio.create_task(
            service.execute_task(DevelopmentTask(id="t", prompt="p", required_agents=["generation"]))
        )
        await work.started.wait()

        assert await service.cancel_task("t") is True
        result = await running

        assert result.error == "cancelled"
        assert service.get_agent_by_id("generation").status == AgentStatus.ACTIVE

    async def test_quick_actions(self, service):
        results = [
            await service.generate_tests("src/app.py"),
            await service.refactor_code("def foo(): pass"),
            await service.add_documentation(),
            await service.optimize_code(),
        ]

        assert all(result.success for result in results)
        assert len(service.get_task_history()) == 4

    async def test_history_is_bounded(self, tmp_path):
        settings = OrchestratorSettings(global_config_dir=tmp_path, history_capacity=3)
        service = BoonIDEService(settings, work=instant_work)

        for i in range(5):
            await service.execute_task(DevelopmentTask(id=f"t{i}", prompt="p", required_agents=["context"]))

        assert [r.task_id for r in service.get_task_history()] == ["t2", "t3", "t4"]


@pytest.mark.asyncio
class TestServicePreferences:
    """Test learning and preference updates through the service."""

    async def test_learning_from_executed_tasks(self, service):
        """Test five successful spec-centric tasks make it the preferred mode."""
        for _ in range(5):
            await service.execute_prompt("verify", mode=Mode.SPEC_CENTRIC)

        assert service.get_user_preferences().preferred_mode == Mode.SPEC_CENTRIC

    async def test_record_user_interaction(self, service):
        service.record_user_interaction(
            UserInteraction(action="accept_suggestion", mode=Mode.VIBECODING, success=True)
        )
        assert service.preferences.interactions()[-1].action == "accept_suggestion"

    async def test_update_user_preferences(self, service):
        await service.update_user_preferences({"customPrompts": ["prefer pytest"]})
        assert service.get_user_preferences().custom_prompts == ["prefer pytest"]

    async def test_update_user_preferences_invalid(self, service):
        with pytest.raises(InvalidConfig):
            await service.update_user_preferences({"preferredMode": "waterfall"})


@pytest.mark.asyncio
class TestServiceLifecycle:
    """Test async context management."""

    async def test_context_manager_closes_channels(self, settings):
        async with BoonIDEService(settings, work=instant_work) as service:
            received = []
            service.on_mode_changed.subscribe(received.append)
            await service.set_mode(Mode.SPEC_CENTRIC)

        assert received == [Mode.SPEC_CENTRIC]
        assert service.on_mode_changed.closed is True
        assert service.on_agents_changed.closed is True
