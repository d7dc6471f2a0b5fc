"""External adapters for the sandboxdb harness.

This package contains everything that touches the outside world
(filesystem, SQLite, threads) and provides implementations of the core
port interfaces.

Adapter Organization:

- storage/: Filesystem storage and the per-process test sandbox
- store/: The embedded document database
- host/: Headless hosts running work units on a dedicated thread
"""
