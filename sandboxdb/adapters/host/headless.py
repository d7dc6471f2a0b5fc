"""Headless host adapter.

Implements HostPort as an owned single-threaded runner: every run starts
a dedicated worker thread with its own asyncio event loop, executes the
scheduled work there, and blocks the caller until the thread has exited.
"""

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from sandboxdb.core.errors import LifecycleError
from sandboxdb.core.ports import HostPort
from sandboxdb.core.work import WorkUnit

logger = logging.getLogger(__name__)


class HeadlessHost(HostPort):
    """Host without any window or rendering, bound to one test identity."""

    def __init__(self, name: str):
        """Initialize the host.

        Args:
            name: Diagnostic name, used for the worker thread and log lines.
        """
        self._name = name
        self._lock = threading.Lock()
        self._pending: list[Callable[[], Any]] = []
        self._tasks: set[asyncio.Future[Any]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._exit_event: asyncio.Event | None = None
        self._thread: threading.Thread | None = None
        self._failure: BaseException | None = None
        self._running = False
        self._disposed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._running

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def thread(self) -> threading.Thread | None:
        """The worker thread of the most recent run."""
        return self._thread

    def schedule(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            if self._loop is None:
                self._pending.append(callback)
                return
            loop = self._loop
        loop.call_soon_threadsafe(self._dispatch, callback)

    def run(self, unit: WorkUnit) -> None:
        with self._lock:
            if self._disposed:
                raise LifecycleError(f"Host {self._name!r} has been disposed")
            if self._running:
                raise LifecycleError(f"Host {self._name!r} is already running")
            self._running = True
            self._failure = None

        self.schedule(lambda: self._run_unit(unit))

        self._thread = threading.Thread(
            target=self._thread_main,
            name=f"host-{self._name}",
            daemon=True,
        )
        logger.debug(f"Starting host {self._name}")
        try:
            self._thread.start()
            self._thread.join()
        finally:
            with self._lock:
                self._running = False
            logger.debug(f"Host {self._name} stopped")

        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure

    def exit(self) -> None:
        with self._lock:
            loop, event = self._loop, self._exit_event
        if loop is None or event is None:
            return
        loop.call_soon_threadsafe(event.set)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            self.exit()
            thread.join()
        logger.debug(f"Disposed host {self._name}")

    async def _run_unit(self, unit: WorkUnit) -> None:
        try:
            await unit.execute()
        except BaseException as e:
            self._failure = e
        finally:
            self.exit()

    def _dispatch(self, callback: Callable[[], Any]) -> None:
        try:
            result = callback()
        except Exception as e:
            logger.error(f"Scheduled callback failed on host {self._name}: {e}", exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _thread_main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        with self._lock:
            self._loop = loop
            self._exit_event = asyncio.Event()
            pending, self._pending = self._pending, []
        try:
            loop.run_until_complete(self._main(pending))
        finally:
            try:
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                with self._lock:
                    self._loop = None
                    self._exit_event = None
                asyncio.set_event_loop(None)
                loop.close()

    async def _main(self, pending: list[Callable[[], Any]]) -> None:
        """Run loop: dispatch scheduled work, then wait for an exit request."""
        for callback in pending:
            self._dispatch(callback)

        assert self._exit_event is not None
        await self._exit_event.wait()

        # Anything still scheduled when the unit finished does not outlive the host.
        leftovers = [task for task in self._tasks if not task.done()]
        for task in leftovers:
            task.cancel()
        if leftovers:
            await asyncio.gather(*leftovers, return_exceptions=True)
