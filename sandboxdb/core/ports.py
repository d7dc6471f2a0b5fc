"""Port interfaces for the sandboxdb harness.

These abstract base classes define the boundaries between the harness
core and the collaborators it orchestrates. Implementations live in the
adapters/ package; in-memory doubles live in tests/fakes/.

Port Interface Categories:

1. **Storage**
   - StoragePort: A directory-scoped view of the filesystem
   - SandboxPort: The process-wide root that hands out per-test storage

2. **Database**
   - DatabasePort: An open handle to the embedded document database

3. **Execution**
   - HostPort: An owned, single-threaded runner for one unit of work
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any, BinaryIO

from .work import WorkUnit


# ============================================================================
# STORAGE PORTS
# ============================================================================


class StoragePort(ABC):
    """Port for a directory-scoped storage accessor.

    All filenames are relative to the storage's own directory.
    """

    @abstractmethod
    def get_storage_for_directory(self, name: str) -> "StoragePort":
        """Return a storage rooted at a subdirectory, creating it if absent.

        Args:
            name: Subdirectory name relative to this storage.

        Returns:
            StoragePort scoped to the subdirectory.
        """

    @abstractmethod
    def get_stream(self, filename: str, mode: str = "rb") -> BinaryIO | None:
        """Open a file inside this storage.

        Args:
            filename: File name relative to this storage.
            mode: File mode; read modes return None for missing files.

        Returns:
            Open binary stream, or None if the file does not exist.

        Raises:
            OSError: If the file exists but cannot be opened.
        """

    @abstractmethod
    def get_full_path(self, filename: str) -> str:
        """Return the absolute path of a file inside this storage."""

    @abstractmethod
    def delete_directory(self, path: str) -> None:
        """Recursively delete a subdirectory.

        Args:
            path: Subdirectory relative to this storage. The empty string
                deletes this storage's own directory.
        """

    @abstractmethod
    def exists(self, filename: str) -> bool:
        """Return True if the file exists inside this storage."""

    @abstractmethod
    def get_files(self, pattern: str = "*") -> list[str]:
        """List file names directly inside this storage matching a glob pattern.

        Returns:
            Sorted file names; subdirectories are not included.
        """


class SandboxPort(ABC):
    """Port for the process-wide sandbox that isolates test storage."""

    @property
    @abstractmethod
    def root(self) -> str:
        """Absolute path of the sandbox root."""

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the sandbox root, wiping previous contents.

        Idempotent: only the first call has an effect.

        Raises:
            SandboxError: If the filesystem refuses creation or deletion.
        """

    @abstractmethod
    def directory_for(self, identity: str) -> StoragePort:
        """Return the isolated storage for one test identity.

        Equal identities always map to the same directory; distinct
        identities never share one.

        Raises:
            ValueError: If identity is empty.
            SandboxError: If the directory cannot be created.
        """


# ============================================================================
# DATABASE PORT
# ============================================================================


class DatabasePort(ABC):
    """Port for an open handle to the embedded document database.

    Documents are JSON-compatible mappings stored under a (collection, key)
    pair. A handle is closed exactly once; afterwards every data operation
    raises LifecycleError. Compaction operates on the backing file and is
    only permitted once the handle is closed.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Backing filename, relative to the storage the handle lives in."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once close() has been called."""

    @abstractmethod
    def close(self) -> None:
        """Close the handle.

        Raises:
            LifecycleError: If the handle is already closed.
        """

    @abstractmethod
    def compact(self) -> bool:
        """Rewrite the backing file to reclaim free space.

        Returns:
            True if a compaction pass ran, False if there was no file.

        Raises:
            LifecycleError: If the handle is still open.
        """

    @abstractmethod
    def write(self) -> AbstractContextManager["DatabasePort"]:
        """Group writes into one transaction, committed on clean exit."""

    @abstractmethod
    def put(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        """Insert or replace a document."""

    @abstractmethod
    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a document, or None if absent."""

    @abstractmethod
    def all(self, collection: str) -> list[dict[str, Any]]:
        """Return every document in a collection in insertion order."""

    @abstractmethod
    def count(self, collection: str) -> int:
        """Return the number of documents in a collection."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """Delete a document. Returns True if one was removed."""

    @abstractmethod
    async def put_async(
        self, collection: str, key: str, document: Mapping[str, Any]
    ) -> None:
        """Insert or replace a document without blocking the event loop."""

    @abstractmethod
    async def get_async(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a document without blocking the event loop."""

    @abstractmethod
    async def all_async(self, collection: str) -> list[dict[str, Any]]:
        """Return every document in a collection without blocking the loop."""

    @abstractmethod
    async def count_async(self, collection: str) -> int:
        """Count documents in a collection without blocking the loop."""


# ============================================================================
# EXECUTION PORT
# ============================================================================


class HostPort(ABC):
    """Port for an owned, single-threaded runner.

    A host runs one work unit on its own execution context, stops as soon
    as that unit finishes, and must be disposed afterwards. Disposal is
    idempotent and is performed by the context-manager exit.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Diagnostic name, usually the test identity."""

    @abstractmethod
    def schedule(self, callback: Callable[[], Any]) -> None:
        """Queue a callback on the host's execution context.

        Callbacks returning an awaitable are awaited on that context.
        """

    @abstractmethod
    def run(self, unit: WorkUnit) -> None:
        """Execute a work unit and block until the host has fully stopped.

        Raises:
            LifecycleError: If the host is disposed or already running.
            BaseException: Whatever the work unit raised, re-raised on the
                caller's thread after the host has stopped.
        """

    @abstractmethod
    def exit(self) -> None:
        """Request the host's run loop to stop."""

    @abstractmethod
    def dispose(self) -> None:
        """Release host resources. Safe to call more than once."""

    def __enter__(self) -> "HostPort":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

