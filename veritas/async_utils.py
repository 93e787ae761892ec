"""Run coroutines to completion from synchronous code, inline or on a thread."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Awaitable, Generic, TypeVar

T = TypeVar("T")


async def _drive(awaitable: Awaitable[T]) -> T:
    return await awaitable


def await_fut_sync(future: Awaitable[T]) -> T:
    """Run ``future`` on a fresh event loop in this thread and return its result."""
    return asyncio.run(_drive(future))


class TaskThread(Generic[T]):
    """A thread running one awaitable on its own event loop."""

    def __init__(self, fut: Awaitable[T]) -> None:
        self._fut = fut
        self._result: Any = None
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self._result = await_fut_sync(self._fut)
        except BaseException as exc:  # re-raised by join()
            self._error = exc

    def start(self) -> None:
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self) -> T:
        """Wait for the task and return its result, re-raising what it raised."""
        self._thread.join()
        if self._error is not None:
            raise self._error
        return self._result


def spawn_task_as_thread(fut: Awaitable[T]) -> TaskThread[T]:
    """Start ``fut`` on a new thread with its own event loop."""
    task = TaskThread(fut)
    task.start()
    return task