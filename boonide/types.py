"""Type definitions for the BoonIDE orchestrator"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class Mode(str, Enum):
    """Development style governing default configuration"""
    VIBECODING = "vibecoding"
    SPEC_CENTRIC = "spec-centric"


class AgentStatus(str, Enum):
    """Lifecycle status of an agent"""
    IDLE = "idle"
    ACTIVE = "active"
    BUSY = "busy"
    ERROR = "error"


class TaskPriority(str, Enum):
    """Scheduling hint for queued tasks"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort key, lower is scheduled first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}


class AgentInfo(BaseModel):
    """A named long-lived worker with status and utilization metrics"""
    id: str = Field(frozen=True, description="Immutable agent identifier")
    name: str = Field(description="Display name")
    description: str = Field(default="", description="What the agent is responsible for")
    status: AgentStatus = Field(default=AgentStatus.IDLE, description="Current lifecycle status")
    cpu_usage: float = Field(default=0.0, ge=0, alias="cpuUsage", description="CPU gauge (percent)")
    memory_usage: float = Field(default=0.0, ge=0, alias="memoryUsage", description="Memory gauge (MB)")
    tasks_completed: int = Field(default=0, ge=0, alias="tasksCompleted", description="Successful tasks")
    last_activity: datetime = Field(
        default_factory=datetime.now, alias="lastActivity", description="Last status mutation"
    )

    class Config:
        populate_by_name = True


class AgentStatusChange(BaseModel):
    """Payload of the single-agent status notification"""
    agent_id: str = Field(alias="agentId")
    status: AgentStatus

    class Config:
        populate_by_name = True


class DevelopmentTask(BaseModel):
    """A unit of requested work bound to a mode and a set of required agents"""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique among in-flight tasks")
    prompt: str = Field(description="Natural-language request")
    mode: Optional[Mode] = Field(default=None, description="Defaults to the current mode at submission")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Scheduling hint")
    required_agents: List[str] = Field(
        default_factory=list, alias="requiredAgents", description="Agent ids to reserve"
    )
    context: Optional[Any] = Field(default=None, description="Opaque caller context")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional task metadata")

    class Config:
        populate_by_name = True


class TaskResult(BaseModel):
    """Immutable outcome of a task"""
    task_id: str = Field(alias="taskId")
    success: bool
    result: Optional[Any] = None
    error: Optional[str] = None
    duration: float = Field(default=0.0, ge=0, description="Wall-clock seconds")
    agents_used: List[str] = Field(default_factory=list, alias="agentsUsed")
    mode: Optional[Mode] = None
    completed_at: datetime = Field(default_factory=datetime.now, alias="completedAt")

    class Config:
        populate_by_name = True
        frozen = True


class UserInteraction(BaseModel):
    """A single user interaction, consumed by the preference store"""
    timestamp: datetime = Field(default_factory=datetime.now)
    action: str
    context: str = ""
    mode: Mode
    success: bool
    duration: float = Field(default=0.0, ge=0)
