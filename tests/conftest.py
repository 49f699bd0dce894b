"""
Pytest configuration and shared fixtures.

This module provides common fixtures for the BoonIDE test suite:
isolated settings, controllable units of work, and wired components.
"""

import asyncio
from typing import Any, List, Optional

import pytest

from boonide.agents.registry import AgentRegistry
from boonide.executor import TaskExecutor
from boonide.history import HistoryLog
from boonide.modes.controller import ModeController
from boonide.preferences import PreferenceStore
from boonide.service import BoonIDEService
from boonide.settings import OrchestratorSettings
from boonide.work import WorkContext


class GatedWork:
    """
    Unit of work that blocks until the test opens the gate.

    Each call records its context, signals `started`, then waits for
    `gate`. While waiting it polls `context.checkpoint()` so cancellation
    is observed.
    """

    def __init__(self, result: Any = "done", error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.contexts: List[WorkContext] = []

    async def __call__(self, context: WorkContext) -> Any:
        self.contexts.append(context)
        self.started.set()
        while not self.gate.is_set():
            context.checkpoint()
            await asyncio.sleep(0.001)
        context.checkpoint()
        if self.error is not None:
            raise self.error
        return self.result

    def open(self) -> None:
        self.gate.set()


async def instant_work(context: WorkContext) -> str:
    """Unit of work that succeeds immediately."""
    return f"handled: {context.prompt}"


async def failing_work(context: WorkContext) -> str:
    raise RuntimeError("agent crashed")


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the user's home directory."""
    return OrchestratorSettings(
        global_config_dir=tmp_path / "global",
        task_timeout=5.0,
    )


@pytest.fixture
def registry():
    return AgentRegistry()


@pytest.fixture
def modes():
    return ModeController()


@pytest.fixture
def history():
    return HistoryLog()


@pytest.fixture
def preferences():
    return PreferenceStore()


@pytest.fixture
def gated_work():
    return GatedWork()


@pytest.fixture
def executor(registry, modes, history, preferences):
    """Executor running instant work."""
    return TaskExecutor(registry, modes, history, work=instant_work, timeout=5.0, preferences=preferences)


@pytest.fixture
def service(settings):
    """Service running instant work."""
    return BoonIDEService(settings, work=instant_work)
