"""Pytest fixtures for running tests against an isolated database.

Enable with ``pytest_plugins = ["sandboxdb.pytest_plugin"]`` in a root
conftest.py, or import the fixtures into a conftest directly.

Fixtures:
- harness_settings (session): HarnessSettings loaded from the environment
- storage_sandbox (session): the wiped sandbox root, kept under pytest's
  per-process base temp directory unless ``sandbox_root`` is configured
- database_harness: a DatabaseTestHarness bound to the current test name
- variant_source / catalog_graph: fixture graphs from core.fixtures
"""

from pathlib import Path

import pytest

from sandboxdb.adapters.storage.native import TemporaryStorage
from sandboxdb.config import HarnessSettings, load_settings
from sandboxdb.core.errors import SandboxError
from sandboxdb.core.fixtures import build_catalog_graph, build_variant_source
from sandboxdb.core.harness import DatabaseTestHarness
from sandboxdb.core.models import CatalogEntry, VariantSource
from sandboxdb.main import create_harness, create_sandbox

SANDBOX_FAILURE_EXIT_CODE = 3


def prepare_sandbox(settings: HarnessSettings, base_temp: Path) -> TemporaryStorage:
    """Create and wipe the session sandbox.

    Without an explicit ``sandbox_root`` the sandbox lives at
    ``base_temp / sandbox_name``, so concurrent pytest processes never wipe
    each other's test directories.

    Raises:
        pytest.exit.Exception: If the sandbox cannot be prepared. No test
            can run without isolated storage.
    """
    if settings.sandbox_root is None:
        settings = settings.model_copy(update={"sandbox_root": base_temp / settings.sandbox_name})

    sandbox = create_sandbox(settings)
    try:
        sandbox.initialize()
    except SandboxError as e:
        pytest.exit(
            f"Cannot prepare isolated test storage: {e}",
            returncode=SANDBOX_FAILURE_EXIT_CODE,
        )
    return sandbox


@pytest.fixture(scope="session")
def harness_settings() -> HarnessSettings:
    """Harness settings for the session; override to customize."""
    return load_settings()


@pytest.fixture(scope="session")
def storage_sandbox(
    harness_settings: HarnessSettings, tmp_path_factory: pytest.TempPathFactory
) -> TemporaryStorage:
    """The session's sandbox, wiped once at session start."""
    return prepare_sandbox(harness_settings, tmp_path_factory.getbasetemp())


@pytest.fixture
def database_harness(
    request: pytest.FixtureRequest,
    harness_settings: HarnessSettings,
    storage_sandbox: TemporaryStorage,
) -> DatabaseTestHarness:
    """A harness whose runs default to the current test's name."""
    return create_harness(
        settings=harness_settings,
        sandbox=storage_sandbox,
        identity=request.node.name,
    )


@pytest.fixture
def variant_source() -> VariantSource:
    return build_variant_source()


@pytest.fixture
def catalog_graph(variant_source: VariantSource) -> CatalogEntry:
    return build_catalog_graph(variant_source)
