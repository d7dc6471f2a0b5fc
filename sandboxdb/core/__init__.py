"""Core harness logic for sandboxdb.

This package contains zero external dependencies. It orchestrates the
storage sandbox, the headless host and the database through the port
interfaces in ports.py; concrete implementations live in the adapters
package.
"""

from .errors import LifecycleError, SandboxError
from .models import (
    CatalogEntry,
    EntryMetadata,
    LifecycleReport,
    LifecycleState,
    NamedFile,
    StoredFile,
    Variant,
    VariantSource,
)

__all__ = [
    "CatalogEntry",
    "EntryMetadata",
    "LifecycleError",
    "LifecycleReport",
    "LifecycleState",
    "NamedFile",
    "SandboxError",
    "StoredFile",
    "Variant",
    "VariantSource",
]
