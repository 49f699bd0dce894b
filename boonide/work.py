"""The opaque unit of work executed for a task.

The executor hands every task a WorkContext and awaits a WorkFunction.
Work that runs for a while should call ``context.checkpoint()`` between
steps so cancellation is honored promptly.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet

from .errors import TaskCancelled
from .modes.config import ModeOptions
from .types import Mode

logger = logging.getLogger(__name__)


@dataclass
class WorkContext:
    """Everything a unit of work may look at.

    Attributes:
        task_id: Id of the task being executed
        prompt: The task prompt
        mode: Mode the task executes under
        config: Option bundle of that mode (a copy)
        agents: Agents reserved for the task
        metadata: Task metadata
    """
    task_id: str
    prompt: str
    mode: Mode
    config: ModeOptions
    agents: FrozenSet[str] = frozenset()
    metadata: Dict[str, Any] = field(default_factory=dict)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def checkpoint(self) -> None:
        """Raise TaskCancelled if cancellation was requested."""
        if self.cancel_event.is_set():
            raise TaskCancelled(self.task_id)


WorkFunction = Callable[[WorkContext], Awaitable[Any]]


def simulated_work(step_delay: float = 0.01, steps: int = 5) -> WorkFunction:
    """
    Build a work function that stands in for real agent work.

    The returned coroutine sleeps in small slices, checking for
    cancellation between slices, and returns a summary of the request.

    Args:
        step_delay: Seconds per slice
        steps: Number of slices

    Returns:
        WorkFunction suitable for TaskExecutor
    """

    async def run(context: WorkContext) -> Dict[str, Any]:
        for step in range(steps):
            context.checkpoint()
            await asyncio.sleep(step_delay)
        context.checkpoint()

        logger.debug(f"Simulated work for task {context.task_id} finished after {steps} steps")
        return {
            "prompt": context.prompt,
            "mode": context.mode.value,
            "agents": sorted(context.agents),
            "options": context.config.model_dump(by_alias=True),
        }

    return run
