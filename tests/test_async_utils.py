import asyncio
import threading

import pytest

from veritas.async_utils import TaskThread, await_fut_sync, spawn_task_as_thread


async def _echo(value):
    await asyncio.sleep(0)
    return value


async def _fail(message):
    await asyncio.sleep(0)
    raise ValueError(message)


async def _on_main_thread():
    return threading.current_thread() is threading.main_thread()


def test_await_fut_sync_returns_result():
    assert await_fut_sync(_echo("abc")) == "abc"


def test_await_fut_sync_propagates_exception():
    with pytest.raises(ValueError, match="boom"):
        await_fut_sync(_fail("boom"))


def test_await_fut_sync_accepts_future_like_awaitable():
    class Wrapper:
        def __await__(self):
            return _echo(7).__await__()

    assert await_fut_sync(Wrapper()) == 7


def test_await_fut_sync_runs_on_calling_thread():
    assert await_fut_sync(_on_main_thread()) is True


def test_spawn_task_as_thread_returns_result():
    task = spawn_task_as_thread(_echo([1, 2, 3]))
    assert isinstance(task, TaskThread)
    assert task.join() == [1, 2, 3]
    assert task.is_alive() is False


def test_spawned_task_runs_on_other_thread():
    task = spawn_task_as_thread(_on_main_thread())
    assert task.join() is False


def test_spawned_task_exception_raised_on_join():
    task = spawn_task_as_thread(_fail("thread failure"))
    with pytest.raises(ValueError, match="thread failure"):
        task.join()


def test_join_twice_gives_same_result():
    task = spawn_task_as_thread(_echo("again"))
    first = task.join()
    second = task.join()
    assert first == "again"
    assert second == "again"