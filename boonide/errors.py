"""Error taxonomy for the orchestrator.

Validation errors (InvalidTask, InvalidConfig) are raised to the caller.
Reservation errors are raised by the agent registry and converted into
failed TaskResults by the executor. TaskCancelled is the cooperative stop
signal observed inside a unit of work.
"""

from typing import Iterable, Optional


class BoonIDEError(Exception):
    """Base class for all orchestrator errors."""
    pass


class InvalidTask(BoonIDEError):
    """Malformed task submission. Never retried automatically."""
    pass


class InvalidConfig(BoonIDEError):
    """Configuration or preference update rejected; prior state is kept."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class ReservationError(BoonIDEError):
    """Base class for agent reservation conflicts."""

    def __init__(self, message: str, agent_ids: Iterable[str] = ()):
        super().__init__(message)
        self.agent_ids = sorted(agent_ids)


class AgentNotFound(ReservationError):
    """One or more agent ids are not in the registry."""

    def __init__(self, agent_ids: Iterable[str]):
        agent_ids = sorted(agent_ids)
        super().__init__(f"Unknown agent(s): {', '.join(agent_ids)}", agent_ids)


class AgentUnavailable(ReservationError):
    """One or more agents cannot be reserved right now."""
    pass


class AgentBusy(AgentUnavailable):
    """One or more agents are held by another in-flight task."""

    def __init__(self, agent_ids: Iterable[str]):
        agent_ids = sorted(agent_ids)
        super().__init__(f"Agent(s) busy: {', '.join(agent_ids)}", agent_ids)


class TaskCancelled(BoonIDEError):
    """Raised inside a unit of work once cancellation was requested."""

    def __init__(self, task_id: str):
        super().__init__(f"Task '{task_id}' was cancelled")
        self.task_id = task_id
