"""Publish/subscribe channels owned by an orchestrator instance.

Each Emitter delivers its events asynchronously from a single delivery
task, so listeners observe events in the order they were fired on that
channel. No ordering holds across different channels.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar('T')

Listener = Callable[[T], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by Emitter.subscribe; dispose() detaches the listener."""

    def __init__(self, emitter: "Emitter", listener: Listener):
        self._emitter = emitter
        self._listener = listener
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._emitter._remove(self._listener)


class Emitter(Generic[T]):
    """An event channel with explicit subscribe/unsubscribe lifecycle.

    Listeners may be plain callables or coroutine functions. A failing
    listener is logged and does not affect the publisher or other
    listeners.

    Example:
        ```python
        on_mode_changed: Emitter[Mode] = Emitter("mode")
        subscription = on_mode_changed.subscribe(lambda mode: print(mode))

        on_mode_changed.fire(Mode.SPEC_CENTRIC)
        await on_mode_changed.flush()

        subscription.dispose()
        ```
    """

    def __init__(self, name: str = "event"):
        self.name = name
        self._listeners: List[Listener] = []
        self._queue: Optional[asyncio.Queue] = None
        self._delivery_task: Optional[asyncio.Task] = None
        self._closed = False

    def __call__(self, listener: Listener) -> Subscription:
        return self.subscribe(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener.

        Args:
            listener: Callable invoked with each event

        Returns:
            Subscription whose dispose() removes the listener
        """
        if self._closed:
            raise RuntimeError(f"Emitter '{self.name}' is closed")
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def fire(self, event: T) -> None:
        """Queue an event for delivery. Must be called inside a running loop."""
        if self._closed or not self._listeners:
            return

        if self._delivery_task is None:
            self._queue = asyncio.Queue()
            self._delivery_task = asyncio.get_running_loop().create_task(self._deliver())

        self._queue.put_nowait(event)

    async def _deliver(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                for listener in list(self._listeners):
                    try:
                        outcome = listener(event)
                        if inspect.isawaitable(outcome):
                            await outcome
                    except Exception:
                        logger.exception(f"Listener on '{self.name}' failed")
            finally:
                self._queue.task_done()

    async def flush(self) -> None:
        """Wait until every event fired so far has been delivered."""
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        """Deliver pending events, then stop the delivery task and drop listeners."""
        if self._closed:
            return

        await self.flush()
        self._closed = True
        self._listeners.clear()

        if self._delivery_task:
            self._delivery_task.cancel()
            try:
                await self._delivery_task
            except asyncio.CancelledError:
                pass
            self._delivery_task = None


def dispose_all(subscriptions: List[Any]) -> None:
    """Dispose a batch of subscriptions, e.g. when a panel is torn down."""
    for subscription in subscriptions:
        subscription.dispose()
