"""Agent registry with all-or-nothing reservations.

The registry owns the live AgentInfo records. Every status mutation goes
through it so that the Busy invariant holds: a Busy agent is held by
exactly one reservation and an Idle agent by none.

State machine per agent:
- IDLE <-> ACTIVE <-> BUSY
- any state -> ERROR -> (administrative restart) -> IDLE
- BUSY is entered only through reserve() and left only through release()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Set
from uuid import uuid4

from ..errors import AgentBusy, AgentNotFound, AgentUnavailable
from ..events import Emitter
from ..types import AgentInfo, AgentStatus, AgentStatusChange
from .catalog import create_builtin_agents

logger = logging.getLogger(__name__)


class ReleaseOutcome(str, Enum):
    """How the task holding a reservation ended."""
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


_RELEASE_STATUS = {
    ReleaseOutcome.SUCCESS: AgentStatus.ACTIVE,
    ReleaseOutcome.ERROR: AgentStatus.ERROR,
    ReleaseOutcome.CANCELLED: AgentStatus.ACTIVE,
}


@dataclass(frozen=True)
class Reservation:
    """Exclusive hold on a set of agents for one task.

    Attributes:
        agent_ids: Agents held by this reservation
        task_id: Task the reservation was made for, if any
        reservation_id: Unique handle identifier
        created_at: When the reservation was granted
    """
    agent_ids: FrozenSet[str]
    task_id: Optional[str] = None
    reservation_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)


class AgentRegistry:
    """Owns the set of known agents and their live status and metrics.

    reserve(), release() and set_status() commit under a single
    asyncio.Lock, so two concurrent reservations over overlapping agent
    sets can never both succeed.

    Example:
        ```python
        registry = AgentRegistry()
        reservation = await registry.reserve({"generation"})
        try:
            ...
        finally:
            await registry.release(reservation, ReleaseOutcome.SUCCESS)
        ```
    """

    def __init__(self, agents: Optional[Iterable[AgentInfo]] = None):
        """Initialize the registry.

        Args:
            agents: Initial agent pool (defaults to the builtin catalog)

        Raises:
            ValueError: If two agents share an id
        """
        if agents is None:
            agents = create_builtin_agents()

        self._agents: Dict[str, AgentInfo] = {}
        for agent in agents:
            if agent.id in self._agents:
                raise ValueError(f"Duplicate agent id '{agent.id}'")
            self._agents[agent.id] = agent.model_copy(deep=True)

        self._reservations: Dict[str, Reservation] = {}
        self._holders: Dict[str, str] = {}  # agent_id -> reservation_id
        self._lock = asyncio.Lock()

        self.on_agents_changed: Emitter[List[AgentInfo]] = Emitter("agents")
        self.on_agent_status_changed: Emitter[AgentStatusChange] = Emitter("agent-status")

        logger.debug(f"Agent registry initialized with {len(self._agents)} agents")

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def ids(self) -> List[str]:
        """Get ids of all known agents in catalog order."""
        return list(self._agents.keys())

    def unknown(self, agent_ids: Iterable[str]) -> Set[str]:
        """Return the subset of agent_ids that are not registered."""
        return {agent_id for agent_id in agent_ids if agent_id not in self._agents}

    def list(self) -> List[AgentInfo]:
        """Get a snapshot of all agents. Mutating it does not affect the registry."""
        return [agent.model_copy(deep=True) for agent in self._agents.values()]

    def get(self, agent_id: str) -> AgentInfo:
        """Get a snapshot of one agent.

        Raises:
            AgentNotFound: If the id is unknown
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFound([agent_id])
        return agent.model_copy(deep=True)

    def holder_of(self, agent_id: str) -> Optional[Reservation]:
        """Get the reservation currently holding an agent, if any."""
        reservation_id = self._holders.get(agent_id)
        if reservation_id is None:
            return None
        return self._reservations.get(reservation_id)

    @property
    def active_reservations(self) -> int:
        return len(self._reservations)

    def _transition(self, agent: AgentInfo, status: AgentStatus) -> None:
        old_status = agent.status
        agent.status = status
        agent.last_activity = datetime.now()
        logger.debug(f"Agent '{agent.id}' status: {old_status.value} -> {status.value}")
        self.on_agent_status_changed.fire(AgentStatusChange(agent_id=agent.id, status=status))

    def _notify_agents_changed(self) -> None:
        self.on_agents_changed.fire(self.list())

    async def reserve(self, agent_ids: Iterable[str], task_id: Optional[str] = None) -> Reservation:
        """Atomically reserve every requested agent.

        Either all agents move to BUSY or none changes.

        Args:
            agent_ids: Agents to reserve
            task_id: Task the reservation is made for (for logging)

        Returns:
            Reservation handle that must later be passed to release()

        Raises:
            ValueError: If agent_ids is empty
            AgentNotFound: If any id is unknown
            AgentBusy: If any agent is already reserved
            AgentUnavailable: If any agent is in the ERROR state
        """
        requested = frozenset(agent_ids)
        if not requested:
            raise ValueError("At least one agent id is required")

        async with self._lock:
            missing = self.unknown(requested)
            if missing:
                raise AgentNotFound(missing)

            busy = [i for i in requested if self._agents[i].status == AgentStatus.BUSY]
            if busy:
                raise AgentBusy(busy)

            failed = [i for i in requested if self._agents[i].status == AgentStatus.ERROR]
            if failed:
                raise AgentUnavailable(
                    f"Agent(s) in error state: {', '.join(sorted(failed))}", failed
                )

            reservation = Reservation(agent_ids=requested, task_id=task_id)
            self._reservations[reservation.reservation_id] = reservation
            for agent_id in sorted(requested):
                self._holders[agent_id] = reservation.reservation_id
                self._transition(self._agents[agent_id], AgentStatus.BUSY)
            self._notify_agents_changed()

        logger.debug(
            f"Reserved {sorted(requested)} as {reservation.reservation_id}"
            + (f" for task {task_id}" if task_id else "")
        )
        return reservation

    async def release(
        self,
        reservation: Reservation,
        outcome: ReleaseOutcome = ReleaseOutcome.SUCCESS,
    ) -> bool:
        """Return reserved agents to service.

        SUCCESS moves agents to ACTIVE and counts a completed task, ERROR
        moves them to ERROR, CANCELLED moves them to ACTIVE without
        counting. Releasing an unknown or already released reservation is a
        no-op.

        Args:
            reservation: Handle returned by reserve()
            outcome: How the task ended

        Returns:
            True if the reservation was released, False if it was not held
        """
        outcome = ReleaseOutcome(outcome)
        async with self._lock:
            held = self._reservations.pop(reservation.reservation_id, None)
            if held is None:
                logger.warning(
                    f"Ignoring release of unknown reservation {reservation.reservation_id}"
                )
                return False

            status = _RELEASE_STATUS[outcome]
            for agent_id in sorted(held.agent_ids):
                self._holders.pop(agent_id, None)
                agent = self._agents[agent_id]
                if outcome == ReleaseOutcome.SUCCESS:
                    agent.tasks_completed += 1
                self._transition(agent, status)
            self._notify_agents_changed()

        logger.debug(f"Released {sorted(held.agent_ids)} with outcome {outcome.value}")
        return True

    async def set_status(self, agent_id: str, status: AgentStatus) -> bool:
        """Administrative status override.

        Busy agents belong to their reservation, so the override is refused
        for them, as is any attempt to set BUSY directly.

        Args:
            agent_id: Agent to update
            status: New status

        Returns:
            True if the status was applied, False if refused

        Raises:
            AgentNotFound: If the id is unknown
        """
        status = AgentStatus(status)
        async with self._lock:
            agent = self._agents.get(agent_id)
            if agent is None:
                raise AgentNotFound([agent_id])

            if status == AgentStatus.BUSY:
                logger.warning(f"Refusing to mark agent '{agent_id}' busy outside a reservation")
                return False
            if agent.status == AgentStatus.BUSY:
                logger.warning(
                    f"Refusing to set agent '{agent_id}' to {status.value} while it is busy"
                )
                return False

            self._transition(agent, status)
            self._notify_agents_changed()
        return True

    async def update_metrics(
        self,
        agent_id: str,
        cpu_usage: Optional[float] = None,
        memory_usage: Optional[float] = None,
    ) -> None:
        """Update utilization gauges.

        Raises:
            AgentNotFound: If the id is unknown
            ValueError: If a gauge is negative
        """
        for name, value in (("cpu_usage", cpu_usage), ("memory_usage", memory_usage)):
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        async with self._lock:
            agent = self._agents.get(agent_id)
            if agent is None:
                raise AgentNotFound([agent_id])
            if cpu_usage is not None:
                agent.cpu_usage = float(cpu_usage)
            if memory_usage is not None:
                agent.memory_usage = float(memory_usage)
            self._notify_agents_changed()
