"""
Built-in agent definitions.

This module defines the fixed pool of agents created when the
orchestrator starts. Agents are never added or removed afterwards.
"""

from datetime import datetime
from typing import Dict, List, Optional

from ..types import AgentInfo, AgentStatus

# Define all built-in agents
BUILTIN_AGENTS: List[AgentInfo] = [
    AgentInfo(
        id="context",
        name="Context Agent",
        description="Maintains project context and developer intent",
        status=AgentStatus.ACTIVE,
        cpu_usage=5,
        memory_usage=128,
    ),
    AgentInfo(
        id="analysis",
        name="Code Analysis Agent",
        description="Analyzes code quality, patterns, and issues",
        status=AgentStatus.ACTIVE,
        cpu_usage=15,
        memory_usage=256,
    ),
    AgentInfo(
        id="generation",
        name="Generation Agent",
        description="Generates code, tests, and documentation",
        status=AgentStatus.IDLE,
        cpu_usage=0,
        memory_usage=512,
    ),
    AgentInfo(
        id="validation",
        name="Validation Agent",
        description="Validates generated code and ensures quality",
        status=AgentStatus.IDLE,
        cpu_usage=0,
        memory_usage=128,
    ),
    AgentInfo(
        id="communication",
        name="Communication Agent",
        description="Handles external integrations and APIs",
        status=AgentStatus.IDLE,
        cpu_usage=0,
        memory_usage=64,
    ),
]

# Weights used to break ties between equally prioritized tasks
DEFAULT_AGENT_PRIORITIES: Dict[str, int] = {
    "context": 10,
    "analysis": 8,
    "generation": 7,
    "validation": 6,
    "communication": 5,
}


def get_builtin_agent(agent_id: str) -> Optional[AgentInfo]:
    """
    Get a builtin agent by its id.

    Args:
        agent_id: The agent id to look up

    Returns:
        A fresh copy of the AgentInfo if found, None otherwise
    """
    for agent in BUILTIN_AGENTS:
        if agent.id == agent_id:
            return agent.model_copy(deep=True)
    return None


def create_builtin_agents() -> List[AgentInfo]:
    """
    Create fresh copies of all builtin agents.

    Returns:
        List of AgentInfo objects with last_activity set to now
    """
    now = datetime.now()
    return [
        agent.model_copy(deep=True, update={"last_activity": now})
        for agent in BUILTIN_AGENTS
    ]
