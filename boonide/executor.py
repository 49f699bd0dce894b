"""
Task execution.

This module provides the TaskExecutor which validates submitted tasks,
admits them in priority order, reserves their agents, runs the unit of
work, and records the outcome.
"""

import asyncio
import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from .agents.registry import AgentRegistry, ReleaseOutcome, Reservation
from .errors import InvalidTask, ReservationError, TaskCancelled
from .history import HistoryLog
from .modes.controller import ModeController
from .preferences import PreferenceStore
from .types import DevelopmentTask, Mode, TaskPriority, TaskResult, UserInteraction
from .work import WorkContext, WorkFunction, simulated_work

logger = logging.getLogger(__name__)

DEFAULT_TASK_TIMEOUT = 300.0
CANCELLED = "cancelled"


class TaskState(str, Enum):
    """State of a task in its lifecycle."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETING = "completing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TERMINAL_STATES = {TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED}

# Outcome already fixed; cancellation is no longer accepted
_UNCANCELLABLE_STATES = _TERMINAL_STATES | {TaskState.COMPLETING}


@dataclass
class QuickAction:
    """A canned task: fixed agents and a prompt template."""
    name: str
    prompt: str
    required_agents: Tuple[str, ...]
    default_target: str


QUICK_ACTIONS: Dict[str, QuickAction] = {
    "generate_tests": QuickAction(
        name="generate_tests",
        prompt="Generate comprehensive unit tests for {target}",
        required_agents=("context", "analysis", "generation", "validation"),
        default_target="the current file",
    ),
    "refactor_code": QuickAction(
        name="refactor_code",
        prompt="Refactor {target} for readability and maintainability",
        required_agents=("context", "analysis", "generation"),
        default_target="the current selection",
    ),
    "add_documentation": QuickAction(
        name="add_documentation",
        prompt="Add documentation to {target}",
        required_agents=("context", "generation"),
        default_target="the current file",
    ),
    "optimize_code": QuickAction(
        name="optimize_code",
        prompt="Optimize the performance of {target}",
        required_agents=("analysis", "generation", "validation"),
        default_target="the current file",
    ),
}


@dataclass
class TaskHandle:
    """Executor bookkeeping for one in-flight task."""
    task: DevelopmentTask
    mode: Mode
    state: TaskState = TaskState.QUEUED
    reservation: Optional[Reservation] = None
    rejection: Optional[ReservationError] = None
    submitted_at: datetime = field(default_factory=datetime.now)
    admitted: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)


class TaskExecutor:
    """
    Runs development tasks against the agent pool.

    The executor:
    - Rejects malformed tasks with InvalidTask before any side effect
    - Admits queued tasks high priority first, then by agent weight, then FIFO
    - Reserves agents fail-fast; a conflict yields a failed TaskResult
    - Runs the unit of work under a timeout, honoring cooperative cancellation
    - Always releases agents and appends to history once reserved

    Example:
        ```python
        executor = TaskExecutor(registry, modes, history)
        result = await executor.submit(
            DevelopmentTask(prompt="add tests", required_agents=["generation"])
        )
        ```
    """

    def __init__(
        self,
        registry: AgentRegistry,
        modes: ModeController,
        history: HistoryLog,
        work: Optional[WorkFunction] = None,
        timeout: Optional[float] = DEFAULT_TASK_TIMEOUT,
        preferences: Optional[PreferenceStore] = None,
    ):
        """
        Initialize the executor.

        Args:
            registry: Agent registry used for reservations
            modes: Mode controller supplying the default mode and options
            history: Log that receives every result past reservation
            work: Unit of work (defaults to simulated_work())
            timeout: Seconds before a unit of work is abandoned (None = no limit)
            preferences: Optional store receiving interaction records
        """
        self.registry = registry
        self.modes = modes
        self.history = history
        self.work = work or simulated_work()
        self.timeout = timeout
        self.preferences = preferences

        self._queue: List[Tuple[int, float, int, TaskHandle]] = []
        self._handles: Dict[str, TaskHandle] = {}
        self._sequence = itertools.count()
        self._lock = asyncio.Lock()

    def in_flight(self) -> List[str]:
        """Get ids of tasks that are queued or running."""
        return list(self._handles.keys())

    def state_of(self, task_id: str) -> Optional[TaskState]:
        """Get the state of an in-flight task, or None if unknown or finished."""
        handle = self._handles.get(task_id)
        return handle.state if handle else None

    def validate(self, task: DevelopmentTask) -> None:
        """
        Check a task before it touches any agent.

        Raises:
            InvalidTask: If the prompt is empty or the agent set is empty or unknown
        """
        if not task.prompt or not task.prompt.strip():
            raise InvalidTask("Task prompt must not be empty")
        if not task.required_agents:
            raise InvalidTask("Task must require at least one agent")
        missing = self.registry.unknown(task.required_agents)
        if missing:
            raise InvalidTask(f"Unknown agent(s): {', '.join(sorted(missing))}")

    def _weight(self, task: DevelopmentTask) -> float:
        if self.preferences is None:
            return 0.0
        return self.preferences.agent_weight(task.required_agents)

    async def submit(self, task: Union[DevelopmentTask, Dict[str, Any]]) -> TaskResult:
        """
        Execute a task to completion, cancellation or failure.

        Args:
            task: DevelopmentTask or a mapping with the same fields

        Returns:
            TaskResult; success=False for reservation conflicts, work
            errors, timeouts and cancellations

        Raises:
            InvalidTask: If the task is malformed or its id is already in flight
        """
        task = coerce_task(task)
        self.validate(task)

        handle = TaskHandle(task=task, mode=task.mode or self.modes.get_mode())
        async with self._lock:
            if task.id in self._handles:
                raise InvalidTask(f"Task '{task.id}' is already in flight")
            self._handles[task.id] = handle
            heapq.heappush(
                self._queue,
                (TaskPriority(task.priority).rank, -self._weight(task), next(self._sequence), handle),
            )
        logger.debug(f"Queued task {task.id} ({task.priority.value} priority, mode={handle.mode.value})")

        try:
            try:
                # Let submissions made in the same scheduling window join the queue
                await asyncio.sleep(0)
                await self._admit()
                await handle.admitted.wait()
            except asyncio.CancelledError:
                await self._abandon(handle)
                raise

            if handle.state == TaskState.CANCELLED:
                return TaskResult(task_id=task.id, success=False, error=CANCELLED, mode=handle.mode)

            if handle.rejection is not None:
                logger.info(f"Task {task.id} rejected: {handle.rejection}")
                return TaskResult(
                    task_id=task.id,
                    success=False,
                    error=str(handle.rejection),
                    duration=0.0,
                    mode=handle.mode,
                )

            return await self._run(handle)
        finally:
            async with self._lock:
                self._handles.pop(task.id, None)

    async def _admit(self) -> None:
        """Reserve agents for queued tasks in priority order."""
        async with self._lock:
            while self._queue:
                entry = heapq.heappop(self._queue)
                handle = entry[3]
                if handle.state == TaskState.CANCELLED:
                    handle.admitted.set()
                    continue

                try:
                    handle.reservation = await self.registry.reserve(
                        handle.task.required_agents, task_id=handle.task.id
                    )
                    handle.state = TaskState.RUNNING
                except ReservationError as e:
                    handle.rejection = e
                    handle.state = TaskState.FAILED
                except asyncio.CancelledError:
                    # reserve() commits nothing when interrupted; leave the task queued
                    heapq.heappush(self._queue, entry)
                    raise
                handle.admitted.set()

    def _drop_queued(self, handle: TaskHandle) -> None:
        handle.state = TaskState.CANCELLED
        self._queue = [entry for entry in self._queue if entry[3] is not handle]
        heapq.heapify(self._queue)
        handle.admitted.set()

    async def _abandon(self, handle: TaskHandle) -> None:
        """Undo admission for a submitter cancelled before its work started."""
        async with self._lock:
            if handle.state == TaskState.QUEUED:
                self._drop_queued(handle)
            elif handle.state == TaskState.RUNNING and handle.reservation is not None:
                handle.state = TaskState.CANCELLED
                await self.registry.release(handle.reservation, ReleaseOutcome.CANCELLED)
        logger.info(f"Task {handle.task.id} abandoned before execution")

    async def _run(self, handle: TaskHandle) -> TaskResult:
        task = handle.task
        reservation = handle.reservation
        context = WorkContext(
            task_id=task.id,
            prompt=task.prompt,
            mode=handle.mode,
            config=self.modes.get_active_options(handle.mode),
            agents=reservation.agent_ids,
            metadata=dict(task.metadata),
            cancel_event=handle.cancel_event,
        )

        started = time.perf_counter()
        payload: Any = None
        error: Optional[str] = None
        outcome = ReleaseOutcome.SUCCESS

        try:
            payload = await asyncio.wait_for(self.work(context), timeout=self.timeout)
        except TaskCancelled:
            outcome = ReleaseOutcome.CANCELLED
        except asyncio.TimeoutError:
            outcome = ReleaseOutcome.ERROR
            error = f"timed out after {self.timeout}s"
        except asyncio.CancelledError:
            handle.cancel_event.set()
            await self._complete(handle, ReleaseOutcome.CANCELLED, None, CANCELLED, started)
            raise
        except Exception as e:
            logger.warning(f"Task {task.id} failed: {e}")
            outcome = ReleaseOutcome.ERROR
            error = str(e) or type(e).__name__

        try:
            async with self._lock:
                handle.state = TaskState.COMPLETING
                if handle.cancel_event.is_set():
                    outcome = ReleaseOutcome.CANCELLED
        except asyncio.CancelledError:
            await self._complete(handle, ReleaseOutcome.CANCELLED, None, CANCELLED, started)
            raise

        if outcome == ReleaseOutcome.CANCELLED:
            payload, error = None, CANCELLED

        return await self._complete(handle, outcome, payload, error, started)

    async def _complete(
        self,
        handle: TaskHandle,
        outcome: ReleaseOutcome,
        payload: Any,
        error: Optional[str],
        started: float,
    ) -> TaskResult:
        """Release agents, record the result and report the interaction."""
        duration = max(time.perf_counter() - started, 0.0)
        await self.registry.release(handle.reservation, outcome)

        result = TaskResult(
            task_id=handle.task.id,
            success=outcome == ReleaseOutcome.SUCCESS,
            result=payload,
            error=error,
            duration=duration,
            agents_used=sorted(handle.reservation.agent_ids),
            mode=handle.mode,
        )
        self.history.append(result)

        if outcome == ReleaseOutcome.SUCCESS:
            handle.state = TaskState.COMPLETED
        elif outcome == ReleaseOutcome.CANCELLED:
            handle.state = TaskState.CANCELLED
        else:
            handle.state = TaskState.FAILED

        logger.info(
            f"Task {handle.task.id} {handle.state.value} in {duration:.3f}s "
            f"using {', '.join(result.agents_used)}"
        )

        if self.preferences is not None:
            self.preferences.record(
                UserInteraction(
                    action=handle.task.metadata.get("action", "execute_task"),
                    context=handle.task.prompt,
                    mode=handle.mode,
                    success=result.success,
                    duration=duration,
                )
            )

        return result

    async def cancel(self, task_id: str) -> bool:
        """
        Cancel a queued or running task.

        A queued task is dropped and never executed. A running task is asked
        to stop cooperatively; its agents are still released and its result
        recorded exactly once with error="cancelled".

        Args:
            task_id: Id of the task to cancel

        Returns:
            True if cancellation was accepted, False for unknown or finished tasks
        """
        async with self._lock:
            handle = self._handles.get(task_id)
            if handle is None or handle.state in _UNCANCELLABLE_STATES:
                return False

            if handle.state == TaskState.QUEUED:
                self._drop_queued(handle)
                logger.info(f"Cancelled queued task {task_id}")
                return True

            if handle.cancel_event.is_set():
                return False

            handle.cancel_event.set()
            logger.info(f"Cancellation requested for running task {task_id}")
            return True

    def build_quick_action(
        self,
        action: str,
        target: Optional[str] = None,
        mode: Optional[Mode] = None,
    ) -> DevelopmentTask:
        """
        Build the task for a quick action.

        Raises:
            InvalidTask: If the action is unknown
        """
        quick = QUICK_ACTIONS.get(action)
        if quick is None:
            raise InvalidTask(f"Unknown quick action '{action}'")
        return DevelopmentTask(
            prompt=quick.prompt.format(target=target or quick.default_target),
            mode=mode,
            required_agents=list(quick.required_agents),
            metadata={"action": quick.name, "target": target},
        )

    async def generate_tests(self, file_path: Optional[str] = None) -> TaskResult:
        return await self.submit(self.build_quick_action("generate_tests", file_path))

    async def refactor_code(self, selection: Optional[str] = None) -> TaskResult:
        return await self.submit(self.build_quick_action("refactor_code", selection))

    async def add_documentation(self, target: Optional[str] = None) -> TaskResult:
        return await self.submit(self.build_quick_action("add_documentation", target))

    async def optimize_code(self, scope: Optional[str] = None) -> TaskResult:
        return await self.submit(self.build_quick_action("optimize_code", scope))


def coerce_task(task: Union[DevelopmentTask, Dict[str, Any]]) -> DevelopmentTask:
    """Accept a DevelopmentTask or a mapping shaped like one."""
    if isinstance(task, DevelopmentTask):
        return task
    if not isinstance(task, dict):
        raise InvalidTask(f"Expected a task mapping, got {type(task).__name__}")
    try:
        return DevelopmentTask.model_validate(task)
    except ValidationError as e:
        raise InvalidTask(f"Malformed task: {e}") from e
