"""Per-key coalescing of concurrent async operations."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Call(Generic[T]):
    """An in-progress operation and the number of callers waiting on it."""

    task: "asyncio.Task[T]"
    waiters: int = 0


class SingleFlight(Generic[T]):
    """Runs at most one operation per key at a time.

    Callers asking for a key that already has an operation in progress wait
    for that operation instead of starting another, and all receive its
    result or its exception. The operation runs as its own task, so a
    cancelled caller only stops waiting; the task is cancelled once no
    caller is left waiting on it.

    The key map is only touched between awaits, so every lookup-or-insert
    is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._calls: Dict[str, _Call[T]] = {}

    def in_flight(self) -> int:
        """Return the number of keys with an operation in progress."""
        return len(self._calls)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn for key, or join the run already in progress.

        Args:
            key: Coalescing key
            fn: Zero-argument coroutine function performing the operation

        Returns:
            The operation's result
        """
        call = self._calls.get(key)
        if call is None:
            call = _Call(task=asyncio.ensure_future(fn()))
            self._calls[key] = call
            call.task.add_done_callback(lambda _task: self._forget(key, call))
        else:
            logger.debug(f"Joining in-flight operation for {key}")

        call.waiters += 1
        try:
            return await asyncio.shield(call.task)
        finally:
            call.waiters -= 1
            if call.waiters == 0 and not call.task.done():
                logger.debug(f"Cancelling abandoned operation for {key}")
                call.task.cancel()
                self._forget(key, call)

    def _forget(self, key: str, call: _Call[T]) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
