"""Operations a presentation layer (panel, API, CLI) may call on the orchestrator."""

from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from .events import Emitter
from .modes.config import ModeConfig
from .preferences import UserPreferences
from .types import (
    AgentInfo,
    AgentStatusChange,
    DevelopmentTask,
    Mode,
    TaskResult,
    UserInteraction,
)


@runtime_checkable
class OrchestratorAPI(Protocol):
    """In-process boundary of the orchestrator.

    BoonIDEService is the one concrete implementation; transports depend
    on this protocol only.
    """

    on_mode_changed: Emitter[Mode]
    on_mode_config_changed: Emitter[ModeConfig]
    on_agents_changed: Emitter[List[AgentInfo]]
    on_agent_status_changed: Emitter[AgentStatusChange]

    @property
    def current_mode(self) -> Mode: ...

    async def set_mode(self, mode: Union[Mode, str]) -> None: ...

    def get_mode_config(self) -> ModeConfig: ...

    async def update_mode_config(self, config: Union[ModeConfig, Dict[str, Any]]) -> None: ...

    def get_active_agents(self) -> List[AgentInfo]: ...

    def get_agent_by_id(self, agent_id: str) -> Optional[AgentInfo]: ...

    async def start_agent(self, agent_id: str) -> bool: ...

    async def stop_agent(self, agent_id: str) -> bool: ...

    async def restart_agent(self, agent_id: str) -> bool: ...

    async def execute_task(self, task: Union[DevelopmentTask, Dict[str, Any]]) -> TaskResult: ...

    async def execute_prompt(self, prompt: str, mode: Optional[Mode] = None) -> TaskResult: ...

    async def cancel_task(self, task_id: str) -> bool: ...

    def get_task_history(self) -> List[TaskResult]: ...

    async def generate_tests(self, file_path: Optional[str] = None) -> TaskResult: ...

    async def refactor_code(self, selection: Optional[str] = None) -> TaskResult: ...

    async def add_documentation(self, target: Optional[str] = None) -> TaskResult: ...

    async def optimize_code(self, scope: Optional[str] = None) -> TaskResult: ...

    def record_user_interaction(self, interaction: UserInteraction) -> None: ...

    def get_user_preferences(self) -> UserPreferences: ...

    async def update_user_preferences(
        self, preferences: Union[UserPreferences, Dict[str, Any]]
    ) -> None: ...
