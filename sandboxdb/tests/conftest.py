"""Shared fixtures for the sandboxdb test suite.

The suite runs on the plugin's own fixtures, so its sandbox lands under
pytest's base temp directory exactly as it does for downstream users.
"""

from sandboxdb.pytest_plugin import (  # noqa: F401
    catalog_graph,
    database_harness,
    harness_settings,
    storage_sandbox,
    variant_source,
)
