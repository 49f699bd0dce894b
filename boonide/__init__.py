"""BoonIDE - in-process orchestration of specialized development agents"""

from .agents import AgentRegistry, ReleaseOutcome, Reservation
from .errors import (
    AgentBusy,
    AgentNotFound,
    AgentUnavailable,
    BoonIDEError,
    InvalidConfig,
    InvalidTask,
    ReservationError,
    TaskCancelled,
)
from .events import Emitter, Subscription
from .executor import TaskExecutor, TaskState
from .history import HistoryLog
from .interfaces import OrchestratorAPI
from .modes import ModeConfig, ModeController, SpecCentricConfig, VibeCodingConfig
from .preferences import PreferenceStore, UserPreferences
from .service import BoonIDEService
from .settings import OrchestratorSettings, load_settings
from .types import (
    AgentInfo,
    AgentStatus,
    AgentStatusChange,
    DevelopmentTask,
    Mode,
    TaskPriority,
    TaskResult,
    UserInteraction,
)
from .work import WorkContext, simulated_work

__version__ = "0.1.0"
__all__ = [
    "AgentRegistry",
    "ReleaseOutcome",
    "Reservation",
    "AgentBusy",
    "AgentNotFound",
    "AgentUnavailable",
    "BoonIDEError",
    "InvalidConfig",
    "InvalidTask",
    "ReservationError",
    "TaskCancelled",
    "Emitter",
    "Subscription",
    "TaskExecutor",
    "TaskState",
    "HistoryLog",
    "OrchestratorAPI",
    "ModeConfig",
    "ModeController",
    "SpecCentricConfig",
    "VibeCodingConfig",
    "PreferenceStore",
    "UserPreferences",
    "BoonIDEService",
    "OrchestratorSettings",
    "load_settings",
    "AgentInfo",
    "AgentStatus",
    "AgentStatusChange",
    "DevelopmentTask",
    "Mode",
    "TaskPriority",
    "TaskResult",
    "UserInteraction",
    "WorkContext",
    "simulated_work",
]
