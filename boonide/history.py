"""Bounded record of completed task results."""

import logging
from collections import deque
from typing import Deque, List

from .types import TaskResult

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 100


class HistoryLog:
    """Append-only log holding the most recent task results.

    When an append would exceed capacity the oldest entries are evicted
    first. Entries are frozen TaskResult models and are never mutated.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY):
        if capacity <= 0:
            raise ValueError("History capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[TaskResult] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, result: TaskResult) -> None:
        """Record a result, evicting the oldest one if the log is full."""
        if len(self._entries) == self.capacity:
            evicted = self._entries[0]
            logger.debug(f"History full, evicting result for task {evicted.task_id}")
        self._entries.append(result)

    def all(self) -> List[TaskResult]:
        """Get copies of all results, oldest first. Payloads are copied too."""
        return [entry.model_copy(deep=True) for entry in self._entries]

    def find(self, task_id: str) -> List[TaskResult]:
        """Get copies of every retained result for a task id."""
        return [entry.model_copy(deep=True) for entry in self._entries if entry.task_id == task_id]

    def clear(self) -> None:
        self._entries.clear()
