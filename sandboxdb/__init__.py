"""sandboxdb: isolated embedded-database test harness.

Public API:
  DatabaseTestHarness, create_harness, create_sandbox
  build_catalog_graph, build_variant_source
  LifecycleError, SandboxError, LifecycleReport, LifecycleState
  HarnessSettings, load_settings

Adapters and ports live in the adapters and core subpackages.
"""

from .config import HarnessSettings, load_settings
from .core.errors import LifecycleError, SandboxError
from .core.fixtures import build_catalog_graph, build_variant_source
from .core.harness import DatabaseTestHarness
from .core.models import LifecycleReport, LifecycleState
from .main import create_harness, create_sandbox

__all__ = [
    "DatabaseTestHarness",
    "HarnessSettings",
    "LifecycleError",
    "LifecycleReport",
    "LifecycleState",
    "SandboxError",
    "build_catalog_graph",
    "build_variant_source",
    "create_harness",
    "create_sandbox",
    "load_settings",
]
