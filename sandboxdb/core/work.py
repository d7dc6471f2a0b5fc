"""Units of work executed by a host."""

import inspect
from collections.abc import Awaitable, Callable

from .errors import LifecycleError


class WorkUnit:
    """A deferred callable that runs exactly once on a host.

    The wrapped callable takes no arguments and may be synchronous or
    return an awaitable. Awaitables are awaited to completion inside
    execute(), so every continuation of the work finishes on the host's
    execution context before the host is allowed to stop.
    """

    def __init__(self, work: Callable[[], None | Awaitable[None]], name: str = ""):
        self._work = work
        self.name = name or getattr(work, "__name__", "work")
        self._executed = False

    @property
    def executed(self) -> bool:
        return self._executed

    async def execute(self) -> None:
        """Run the wrapped callable.

        Raises:
            LifecycleError: If the unit has already been executed.
        """
        if self._executed:
            raise LifecycleError(f"Work unit {self.name!r} has already been executed")
        self._executed = True

        result = self._work()
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"WorkUnit(name={self.name!r}, executed={self._executed})"
