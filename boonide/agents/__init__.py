"""
BoonIDE agent pool.

This module provides the builtin agent catalog and the registry that owns
agent status, metrics and reservations.
"""

from .catalog import BUILTIN_AGENTS, DEFAULT_AGENT_PRIORITIES, create_builtin_agents, get_builtin_agent
from .registry import AgentRegistry, ReleaseOutcome, Reservation

__all__ = [
    "BUILTIN_AGENTS",
    "DEFAULT_AGENT_PRIORITIES",
    "create_builtin_agents",
    "get_builtin_agent",
    "AgentRegistry",
    "ReleaseOutcome",
    "Reservation",
]
