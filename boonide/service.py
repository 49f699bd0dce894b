"""
The BoonIDE orchestration service.

This module wires the agent registry, mode controller, task executor,
history log and preference store into a single object implementing
OrchestratorAPI. A presentation layer creates one service, subscribes to
its change channels, and disposes the subscriptions when it goes away.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .agents.registry import AgentRegistry
from .errors import AgentNotFound, InvalidConfig
from .events import Emitter
from .executor import TaskExecutor
from .history import HistoryLog
from .modes.config import ModeConfig, ModeConfigLoader
from .modes.controller import ModeController
from .preferences import PreferenceStore, UserPreferences
from .settings import OrchestratorSettings
from .types import (
    AgentInfo,
    AgentStatus,
    AgentStatusChange,
    DevelopmentTask,
    Mode,
    TaskResult,
    UserInteraction,
)
from .work import WorkFunction

logger = logging.getLogger(__name__)


class BoonIDEService:
    """
    In-process orchestrator for development requests.

    The service manages:
    - The active mode and both mode configuration bundles
    - The agent pool, its status and administrative start/stop/restart
    - Task submission, cancellation and the bounded result history
    - User preferences and interaction learning

    Example:
        ```python
        async with BoonIDEService() as service:
            subscription = service.on_agent_status_changed.subscribe(print)
            result = await service.execute_prompt("explain this module")
            subscription.dispose()
        ```
    """

    def __init__(
        self,
        settings: Optional[OrchestratorSettings] = None,
        work: Optional[WorkFunction] = None,
        agents: Optional[Iterable[AgentInfo]] = None,
        mode_config: Optional[ModeConfig] = None,
        preferences: Optional[UserPreferences] = None,
    ):
        """
        Initialize the service.

        Args:
            settings: Orchestrator settings (defaults to OrchestratorSettings())
            work: Unit of work for tasks (defaults to simulated work)
            agents: Agent pool (defaults to the builtin catalog)
            mode_config: Initial mode config; when omitted it is built from the
                         preference overrides plus YAML overrides on disk
            preferences: Initial preferences (defaults to settings.preferences)

        Raises:
            InvalidConfig: If the configured preferences are malformed
        """
        self.settings = settings or OrchestratorSettings()

        if preferences is None:
            preferences = self._initial_preferences()
        self.preferences = PreferenceStore(preferences)

        if mode_config is None:
            base = ModeConfig(
                vibecoding=preferences.vibecoding_prefs,
                spec_centric=preferences.spec_centric_prefs,
            )
            loader = ModeConfigLoader(self.settings.global_config_dir)
            mode_config = loader.load(self.settings.project_root, base)

        self.modes = ModeController(
            self.settings.initial_mode or preferences.preferred_mode,
            mode_config,
        )
        self.registry = AgentRegistry(agents)
        self.history = HistoryLog(self.settings.history_capacity)
        self.executor = TaskExecutor(
            self.registry,
            self.modes,
            self.history,
            work=work,
            timeout=self.settings.task_timeout,
            preferences=self.preferences,
        )

        self.on_mode_changed: Emitter[Mode] = self.modes.on_mode_changed
        self.on_mode_config_changed: Emitter[ModeConfig] = self.modes.on_config_changed
        self.on_agents_changed: Emitter[List[AgentInfo]] = self.registry.on_agents_changed
        self.on_agent_status_changed: Emitter[AgentStatusChange] = (
            self.registry.on_agent_status_changed
        )

        logger.info(
            f"BoonIDE service ready: mode={self.modes.get_mode().value}, "
            f"agents={len(self.registry)}, history_capacity={self.history.capacity}"
        )

    def _initial_preferences(self) -> UserPreferences:
        data = dict(self.settings.preferences)
        if "learningEnabled" not in data and "learning_enabled" not in data:
            data["learningEnabled"] = self.settings.learning_enabled
        try:
            return UserPreferences.model_validate(data)
        except ValidationError as e:
            raise InvalidConfig(f"Invalid preferences in settings: {e}", e.errors()) from e

    async def __aenter__(self) -> "BoonIDEService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Flush pending notifications and close every change channel."""
        for emitter in (
            self.on_mode_changed,
            self.on_mode_config_changed,
            self.on_agents_changed,
            self.on_agent_status_changed,
        ):
            await emitter.aclose()
        logger.debug("BoonIDE service closed")

    # Mode management

    @property
    def current_mode(self) -> Mode:
        return self.modes.get_mode()

    async def set_mode(self, mode: Union[Mode, str]) -> None:
        await self.modes.set_mode(mode)

    def get_mode_config(self) -> ModeConfig:
        return self.modes.get_config()

    async def update_mode_config(self, config: Union[ModeConfig, Dict[str, Any]]) -> None:
        await self.modes.update_config(config)

    # Agent management

    def get_active_agents(self) -> List[AgentInfo]:
        """Get every agent whose status is not idle."""
        return [agent for agent in self.registry.list() if agent.status != AgentStatus.IDLE]

    def get_agent_by_id(self, agent_id: str) -> Optional[AgentInfo]:
        try:
            return self.registry.get(agent_id)
        except AgentNotFound:
            return None

    async def _set_agent_status(self, agent_id: str, status: AgentStatus) -> bool:
        try:
            return await self.registry.set_status(agent_id, status)
        except AgentNotFound:
            logger.warning(f"Cannot set status of unknown agent '{agent_id}'")
            return False

    async def start_agent(self, agent_id: str) -> bool:
        """Move an agent to ACTIVE. False for unknown or busy agents."""
        return await self._set_agent_status(agent_id, AgentStatus.ACTIVE)

    async def stop_agent(self, agent_id: str) -> bool:
        """Move an agent to IDLE. False for unknown or busy agents."""
        return await self._set_agent_status(agent_id, AgentStatus.IDLE)

    async def restart_agent(self, agent_id: str) -> bool:
        """Move an agent (typically in ERROR) back to IDLE and reset its CPU gauge."""
        if not await self._set_agent_status(agent_id, AgentStatus.IDLE):
            return False
        await self.registry.update_metrics(agent_id, cpu_usage=0)
        logger.info(f"Agent '{agent_id}' restarted")
        return True

    # Task execution

    async def execute_task(self, task: Union[DevelopmentTask, Dict[str, Any]]) -> TaskResult:
        return await self.executor.submit(task)

    async def execute_prompt(self, prompt: str, mode: Optional[Mode] = None) -> TaskResult:
        """Run a prompt on the default agent set."""
        task = DevelopmentTask(
            prompt=prompt,
            mode=mode,
            required_agents=list(self.settings.default_agents),
            metadata={"action": "execute_prompt"},
        )
        return await self.executor.submit(task)

    async def cancel_task(self, task_id: str) -> bool:
        return await self.executor.cancel(task_id)

    def get_task_history(self) -> List[TaskResult]:
        return self.history.all()

    # Quick actions

    async def generate_tests(self, file_path: Optional[str] = None) -> TaskResult:
        return await self.executor.generate_tests(file_path)

    async def refactor_code(self, selection: Optional[str] = None) -> TaskResult:
        return await self.executor.refactor_code(selection)

    async def add_documentation(self, target: Optional[str] = None) -> TaskResult:
        return await self.executor.add_documentation(target)

    async def optimize_code(self, scope: Optional[str] = None) -> TaskResult:
        return await self.executor.optimize_code(scope)

    # Learning and adaptation

    def record_user_interaction(self, interaction: UserInteraction) -> None:
        self.preferences.record(interaction)

    def get_user_preferences(self) -> UserPreferences:
        return self.preferences.get()

    async def update_user_preferences(
        self, preferences: Union[UserPreferences, Dict[str, Any]]
    ) -> None:
        await self.preferences.update(preferences)
