"""Fake DatabasePort implementation for testing."""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sandboxdb.core.errors import LifecycleError
from sandboxdb.core.ports import DatabasePort

from .storage import FakeStorage

PAGE_SIZE = 1024


class FakeDatabase(DatabasePort):
    """In-memory document database for testing.

    Simulates a backing file in its FakeStorage: closing writes one page
    per document plus a header page and some free pages, and compacting
    drops the free pages. Every lifecycle call is appended to ``events``.
    """

    def __init__(
        self,
        storage: FakeStorage,
        label: str = "client",
        events: list[str] | None = None,
    ):
        """Initialize an open database with no documents."""
        self.storage = storage
        self.label = label
        self.events = events if events is not None else []
        self.documents: dict[tuple[str, str], dict[str, Any]] = {}
        self.close_call_count = 0
        self.compact_call_count = 0
        self.should_fail_compact: bool = False
        self._closed = False
        self.events.append("open")

    @property
    def filename(self) -> str:
        return f"{self.label}.db"

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self.close_call_count += 1
        self.events.append("close")
        if self._closed:
            raise LifecycleError(f"{self.filename} is already closed")
        self._closed = True
        pages = 1 + len(self.documents) + 4
        self.storage.files[self.filename] = b"\0" * (pages * PAGE_SIZE)

    def compact(self) -> bool:
        self.compact_call_count += 1
        self.events.append("compact")
        if not self._closed:
            raise LifecycleError(f"Cannot compact {self.filename} while it is open")
        if self.should_fail_compact:
            raise OSError("compaction failed")
        pages = 1 + len(self.documents)
        self.storage.files[self.filename] = b"\0" * (pages * PAGE_SIZE)
        return True

    def _check_open(self) -> None:
        if self._closed:
            raise LifecycleError(f"{self.filename} has already been closed")

    @contextmanager
    def write(self) -> Iterator["FakeDatabase"]:
        self._check_open()
        yield self

    def put(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        self._check_open()
        self.documents[(collection, key)] = dict(document)

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        self._check_open()
        document = self.documents.get((collection, key))
        return dict(document) if document is not None else None

    def all(self, collection: str) -> list[dict[str, Any]]:
        self._check_open()
        return [dict(doc) for (col, _), doc in self.documents.items() if col == collection]

    def count(self, collection: str) -> int:
        self._check_open()
        return sum(1 for col, _ in self.documents if col == collection)

    def delete(self, collection: str, key: str) -> bool:
        self._check_open()
        return self.documents.pop((collection, key), None) is not None

    async def put_async(
        self, collection: str, key: str, document: Mapping[str, Any]
    ) -> None:
        self.put(collection, key, document)

    async def get_async(self, collection: str, key: str) -> dict[str, Any] | None:
        return self.get(collection, key)

    async def all_async(self, collection: str) -> list[dict[str, Any]]:
        return self.all(collection)

    async def count_async(self, collection: str) -> int:
        return self.count(collection)
