"""Composition root for the sandboxdb harness.

This module is the ONLY location that imports both the core harness and
the concrete adapter implementations. All wiring of dependencies happens
here.

Module Structure:
- Logging configuration
- Sandbox creation from settings
- Harness assembly (sandbox + database factory + host factory)
"""

import logging
import sys
from functools import partial

from sandboxdb.adapters.host.headless import HeadlessHost
from sandboxdb.adapters.storage.native import TemporaryStorage
from sandboxdb.adapters.store.sqlite import SQLiteDocumentDatabase
from sandboxdb.config import HarnessSettings, load_settings
from sandboxdb.core.harness import DatabaseTestHarness
from sandboxdb.core.ports import SandboxPort, StoragePort


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure harness logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def create_sandbox(settings: HarnessSettings | None = None) -> TemporaryStorage:
    """Create the process-wide sandbox described by settings.

    The sandbox is not initialized here; it wipes its root on first use.
    """
    settings = settings or load_settings()
    return TemporaryStorage(settings.resolved_sandbox_root)


def create_harness(
    settings: HarnessSettings | None = None,
    sandbox: SandboxPort | None = None,
    identity: str | None = None,
) -> DatabaseTestHarness:
    """Wire a DatabaseTestHarness with the SQLite database and headless host.

    Args:
        settings: Harness settings; loaded from the environment if omitted.
        sandbox: Sandbox to share between harnesses; created if omitted.
        identity: Default test identity bound to the harness.

    Returns:
        Ready-to-use DatabaseTestHarness.
    """
    settings = settings or load_settings()
    sandbox = sandbox or create_sandbox(settings)

    return DatabaseTestHarness(
        sandbox=sandbox,
        database_factory=partial(_open_database, extension=settings.database_extension),
        host_factory=HeadlessHost,
        client_label=settings.client_label,
        identity=identity,
    )


def _open_database(storage: StoragePort, label: str, extension: str) -> SQLiteDocumentDatabase:
    return SQLiteDocumentDatabase(storage, label=label, extension=extension)
