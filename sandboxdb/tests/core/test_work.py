"""Unit tests for WorkUnit."""

import asyncio

import pytest

from sandboxdb.core.errors import LifecycleError
from sandboxdb.core.work import WorkUnit


@pytest.mark.asyncio
async def test_executes_sync_work() -> None:
    calls: list[str] = []
    unit = WorkUnit(lambda: calls.append("ran"))

    await unit.execute()

    assert calls == ["ran"]
    assert unit.executed is True


@pytest.mark.asyncio
async def test_awaits_async_work_to_completion() -> None:
    """Test that every continuation finishes before execute() returns."""
    calls: list[str] = []

    async def work() -> None:
        calls.append("start")
        await asyncio.sleep(0)
        calls.append("after first await")
        await asyncio.sleep(0.01)
        calls.append("end")

    await WorkUnit(work).execute()

    assert calls == ["start", "after first await", "end"]


@pytest.mark.asyncio
async def test_executes_only_once() -> None:
    calls: list[int] = []
    unit = WorkUnit(lambda: calls.append(1), name="once")

    await unit.execute()
    with pytest.raises(LifecycleError, match="'once' has already been executed"):
        await unit.execute()

    assert calls == [1]


@pytest.mark.asyncio
async def test_failure_propagates_and_still_counts_as_executed() -> None:
    def work() -> None:
        raise ValueError("boom")

    unit = WorkUnit(work)

    with pytest.raises(ValueError, match="boom"):
        await unit.execute()
    assert unit.executed is True


def test_name_defaults_to_callable_name() -> None:
    def my_work() -> None:
        pass

    assert WorkUnit(my_work).name == "my_work"
