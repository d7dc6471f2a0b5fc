"""Fake implementations of core ports for testing.

These in-memory implementations allow the harness to be tested without
touching the filesystem, SQLite or threads:

- FakeStorage / FakeSandbox: In-memory files and per-test directories
- FakeDatabase: In-memory documents with a simulated backing file
- FakeHost: Runs work units inline on the calling thread

All fakes can share an ``events`` list so tests can assert ordering.
"""

from .database import FakeDatabase
from .host import FakeHost
from .storage import FakeSandbox, FakeStorage

__all__ = [
    "FakeDatabase",
    "FakeHost",
    "FakeSandbox",
    "FakeStorage",
]
