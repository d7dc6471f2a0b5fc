"""Tests for the HeadlessHost adapter."""

import asyncio
import threading

import pytest

from sandboxdb.adapters.host.headless import HeadlessHost
from sandboxdb.core.errors import LifecycleError
from sandboxdb.core.work import WorkUnit


def test_runs_sync_work_on_host_thread() -> None:
    """Test that work executes on the host's own thread, not the caller's."""
    seen: list[threading.Thread] = []

    with HeadlessHost("test_sync") as host:
        host.run(WorkUnit(lambda: seen.append(threading.current_thread())))

    assert len(seen) == 1
    assert seen[0] is not threading.current_thread()
    assert seen[0].name == "host-test_sync"


def test_run_blocks_until_host_thread_exits() -> None:
    host = HeadlessHost("test_blocking")

    host.run(WorkUnit(lambda: None))

    assert host.thread is not None
    assert host.thread.is_alive() is False
    assert host.running is False
    host.dispose()


def test_async_work_completes_before_host_stops() -> None:
    """Test that async continuations finish on the same loop before exit."""
    calls: list[str] = []
    loops: list[asyncio.AbstractEventLoop] = []

    async def work() -> None:
        loops.append(asyncio.get_running_loop())
        await asyncio.sleep(0.01)
        calls.append("resumed")
        await asyncio.sleep(0)
        loops.append(asyncio.get_running_loop())
        calls.append("done")

    with HeadlessHost("test_async") as host:
        host.run(WorkUnit(work))

    assert calls == ["resumed", "done"]
    assert loops[0] is loops[1]
    assert loops[0].is_closed()


def test_work_failure_propagates_after_clean_exit() -> None:
    """Test that the host stops cleanly and re-raises on the caller thread."""

    def work() -> None:
        raise AssertionError("body failed")

    host = HeadlessHost("test_failure")
    with pytest.raises(AssertionError, match="body failed"):
        host.run(WorkUnit(work))

    assert host.thread is not None
    assert host.thread.is_alive() is False
    assert host.running is False
    host.dispose()
    assert host.disposed is True


def test_async_failure_propagates() -> None:
    async def work() -> None:
        await asyncio.sleep(0)
        raise RuntimeError("async body failed")

    with HeadlessHost("test_async_failure") as host:
        with pytest.raises(RuntimeError, match="async body failed"):
            host.run(WorkUnit(work))

    assert host.disposed is True


def test_scheduled_callbacks_run_before_unit() -> None:
    calls: list[str] = []

    with HeadlessHost("test_schedule") as host:
        host.schedule(lambda: calls.append("scheduled"))
        host.run(WorkUnit(lambda: calls.append("unit")))

    assert calls == ["scheduled", "unit"]


def test_callbacks_scheduled_from_work_run_on_same_thread() -> None:
    threads: list[threading.Thread] = []

    async def work() -> None:
        done = asyncio.Event()

        def callback() -> None:
            threads.append(threading.current_thread())
            done.set()

        host.schedule(callback)
        threads.append(threading.current_thread())
        await done.wait()

    with HeadlessHost("test_nested_schedule") as host:
        host.run(WorkUnit(work))

    assert len(threads) == 2
    assert threads[0] is threads[1]


def test_leftover_tasks_are_cancelled_on_exit() -> None:
    """Test that background tasks do not outlive the host."""
    cancelled = threading.Event()

    async def background() -> None:
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def work() -> None:
        host.schedule(background)
        await asyncio.sleep(0.01)

    with HeadlessHost("test_leftovers") as host:
        host.run(WorkUnit(work))

    assert cancelled.is_set()


def test_run_after_dispose_is_an_error() -> None:
    host = HeadlessHost("test_disposed")
    host.dispose()

    with pytest.raises(LifecycleError, match="has been disposed"):
        host.run(WorkUnit(lambda: None))


def test_dispose_is_idempotent() -> None:
    host = HeadlessHost("test_dispose_twice")
    host.run(WorkUnit(lambda: None))

    host.dispose()
    host.dispose()

    assert host.disposed is True


def test_nested_run_is_an_error() -> None:
    """Test that a host refuses a second run while the first is in progress."""
    errors: list[BaseException] = []

    def work() -> None:
        try:
            host.run(WorkUnit(lambda: None))
        except LifecycleError as e:
            errors.append(e)

    with HeadlessHost("test_nested") as host:
        host.run(WorkUnit(work))

    assert len(errors) == 1
    assert "already running" in str(errors[0])


def test_exit_without_running_is_harmless() -> None:
    host = HeadlessHost("test_idle")

    host.exit()
    host.dispose()
