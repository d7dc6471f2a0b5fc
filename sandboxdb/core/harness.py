"""Test lifecycle controller.

Runs a test body against a fresh database in an isolated directory,
inside a headless host, and tears everything down in a fixed order:

1. Resolve the test directory from the sandbox
2. Open the database under the client label
3. Log the backing file path
4. Run the test body on the host
5. Close the database
6. Measure the backing file
7. Compact the backing file
8. Measure it again
9. Dispose the host

Steps 5 to 9 run whether or not the body raised. Failures during those
steps are logged and never hide the body's own exception.
"""

import inspect
import io
import logging
from collections.abc import Awaitable, Callable

from .errors import LifecycleError
from .models import LifecycleReport, LifecycleState
from .ports import DatabasePort, HostPort, SandboxPort, StoragePort
from .work import WorkUnit

logger = logging.getLogger(__name__)

Body = Callable[[DatabasePort, StoragePort], None]
AsyncBody = Callable[[DatabasePort, StoragePort], Awaitable[None]]
DatabaseFactory = Callable[[StoragePort, str], DatabasePort]
HostFactory = Callable[[str], HostPort]


class DatabaseTestHarness:
    """Orchestrates sandbox, host and database for each test run.

    All collaborators are injected; the harness holds no global state.
    Reports of every run are kept in ``reports`` so a test can inspect the
    teardown of a run that raised.
    """

    def __init__(
        self,
        sandbox: SandboxPort,
        database_factory: DatabaseFactory,
        host_factory: HostFactory,
        client_label: str = "client",
        identity: str | None = None,
    ):
        """Initialize the harness.

        Args:
            sandbox: Sandbox handing out per-test storage.
            database_factory: Opens a database in a storage under a label.
            host_factory: Creates a host named after a test identity.
            client_label: Logical label the database is opened under.
            identity: Default test identity, used when a run does not
                pass one explicitly (the pytest plugin binds the test name).
        """
        self.sandbox = sandbox
        self.database_factory = database_factory
        self.host_factory = host_factory
        self.client_label = client_label
        self.identity = identity
        self.reports: list[LifecycleReport] = []

    def run_test_with_database(
        self, action: Body, identity: str | None = None
    ) -> LifecycleReport:
        """Run a synchronous test body against a fresh database.

        Args:
            action: Test body, called with the database and the test storage.
            identity: Test identity; defaults to the harness's bound identity.

        Returns:
            LifecycleReport of the completed run.

        Raises:
            TypeError: If action returns an awaitable.
            LifecycleError: If the body closed the database itself.
        """
        return self._run(action, identity, asynchronous=False)

    def run_test_with_database_async(
        self, action: AsyncBody, identity: str | None = None
    ) -> LifecycleReport:
        """Run an asynchronous test body against a fresh database.

        The body is awaited on the host's event loop, and the database is
        only closed once the awaited body has fully resolved.

        Args:
            action: Coroutine function called with the database and storage.
            identity: Test identity; defaults to the harness's bound identity.

        Returns:
            LifecycleReport of the completed run.

        Raises:
            TypeError: If action does not return an awaitable.
            LifecycleError: If the body closed the database itself.
        """
        return self._run(action, identity, asynchronous=True)

    def _resolve_identity(self, identity: str | None) -> str:
        resolved = identity or self.identity
        if not resolved:
            raise ValueError(
                "A test identity is required: pass identity= or bind one to the harness"
            )
        return resolved

    def _run(
        self,
        action: Body | AsyncBody,
        identity: str | None,
        asynchronous: bool,
    ) -> LifecycleReport:
        identity = self._resolve_identity(identity)
        report = LifecycleReport(identity=identity)
        self.reports.append(report)

        test_storage = self.sandbox.directory_for(identity)
        report.advance(LifecycleState.DIRECTORY_RESOLVED)

        try:
            with self.host_factory(identity) as host:
                host.run(
                    WorkUnit(
                        lambda: self._execute(action, test_storage, report, asynchronous),
                        name=identity,
                    )
                )
        finally:
            report.dispose()
            logger.debug(
                f"Test run {identity} finished in state {report.state.value} "
                f"(completed={report.completed})"
            )

        return report

    async def _execute(
        self,
        action: Body | AsyncBody,
        storage: StoragePort,
        report: LifecycleReport,
        asynchronous: bool,
    ) -> None:
        database = self.database_factory(storage, self.client_label)
        report.advance(LifecycleState.DATABASE_OPEN)

        report.database_path = storage.get_full_path(database.filename)
        logger.info(f"Running test using database file {report.database_path}")

        report.advance(LifecycleState.BODY_EXECUTING)
        try:
            result = action(database, storage)
            if asynchronous:
                if not inspect.isawaitable(result):
                    raise TypeError(
                        "run_test_with_database_async() requires an action returning an awaitable"
                    )
                await result
            elif inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError(
                    "Action returned an awaitable; use run_test_with_database_async()"
                )
        except BaseException:
            report.body_failed = True
            self._teardown(database, storage, report)
            raise

        self._teardown(database, storage, report)

    def _teardown(
        self, database: DatabasePort, storage: StoragePort, report: LifecycleReport
    ) -> None:
        """Close, measure, compact and measure again.

        A double close is re-raised once the remaining steps have run,
        unless the body already failed.
        """
        deferred: LifecycleError | None = None

        try:
            database.close()
        except LifecycleError as e:
            logger.warning(f"Database {database.filename} was closed before teardown: {e}")
            deferred = e
        except Exception as e:
            logger.warning(f"Failed to close database {database.filename}: {e}", exc_info=True)
        report.advance(LifecycleState.DATABASE_CLOSED)

        report.size_before_compact = get_file_size(storage, database)
        logger.info(f"Final database size: {report.size_before_compact}")

        try:
            database.compact()
        except Exception as e:
            logger.warning(f"Failed to compact database {database.filename}: {e}", exc_info=True)
        report.advance(LifecycleState.COMPACTED)

        report.size_after_compact = get_file_size(storage, database)
        logger.info(f"Final database size after compact: {report.size_after_compact}")

        if deferred is not None and not report.body_failed:
            raise deferred


def get_file_size(storage: StoragePort, database: DatabasePort) -> int:
    """Return the size of a database's backing file, or 0 if unreadable.

    The file may still be locked by the engine on some platforms; the
    measurement is diagnostic only, so a failed read counts as empty.
    """
    try:
        stream = storage.get_stream(database.filename)
        if stream is None:
            return 0
        with stream:
            return stream.seek(0, io.SEEK_END)
    except OSError as e:
        logger.debug(f"Could not measure {database.filename}: {e}")
        return 0
