"""Filesystem storage adapters.

NativeStorage implements StoragePort over a plain directory.
TemporaryStorage implements SandboxPort: a process-wide root that is
wiped once, on first use, and hands out one subdirectory per test.
"""

import hashlib
import logging
import re
import shutil
import threading
from pathlib import Path
from typing import BinaryIO

from sandboxdb.core.errors import SandboxError
from sandboxdb.core.ports import SandboxPort, StoragePort

logger = logging.getLogger(__name__)

# Characters that cannot appear in a directory name on at least one platform.
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class NativeStorage(StoragePort):
    """Storage backed by a directory on the local filesystem."""

    def __init__(self, base_path: str | Path, create: bool = True):
        """Initialize storage rooted at base_path.

        Args:
            base_path: Directory this storage is scoped to.
            create: Create the directory if it does not exist.
        """
        self.base_path = Path(base_path).resolve()
        if create:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def get_storage_for_directory(self, name: str) -> "NativeStorage":
        return NativeStorage(self._resolve(name))

    def get_stream(self, filename: str, mode: str = "rb") -> BinaryIO | None:
        path = self._resolve(filename)
        if "r" in mode and not path.exists():
            return None
        if "b" not in mode:
            mode += "b"
        if "w" in mode or "a" in mode:
            path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, mode)

    def get_full_path(self, filename: str) -> str:
        return str(self._resolve(filename))

    def delete_directory(self, path: str) -> None:
        target = self._resolve(path)
        if target.exists():
            shutil.rmtree(target)
            logger.debug(f"Deleted directory {target}")

    def exists(self, filename: str) -> bool:
        return self._resolve(filename).exists()

    def get_files(self, pattern: str = "*") -> list[str]:
        """List file names in this storage matching a glob pattern."""
        return sorted(p.name for p in self.base_path.glob(pattern) if p.is_file())

    def _resolve(self, relative: str) -> Path:
        """Resolve a relative name, refusing paths that escape this storage."""
        if not relative:
            return self.base_path
        path = (self.base_path / relative).resolve()
        if path != self.base_path and self.base_path not in path.parents:
            raise ValueError(f"Path {relative!r} escapes storage {self.base_path}")
        return path

    def __repr__(self) -> str:
        return f"NativeStorage({str(self.base_path)!r})"


class TemporaryStorage(SandboxPort):
    """Process-wide sandbox root handing out one directory per test.

    The root is wiped exactly once, the first time it is initialized or a
    test directory is requested. Test directories are created lazily and
    left in place after the test for inspection.
    """

    def __init__(self, root: str | Path):
        """Initialize the sandbox.

        Args:
            root: Sandbox root directory. Its contents are deleted on
                initialization.
        """
        self._root = Path(root).resolve()
        self._storage: NativeStorage | None = None
        self._init_lock = threading.Lock()

    @property
    def root(self) -> str:
        return str(self._root)

    @property
    def initialized(self) -> bool:
        return self._storage is not None

    def initialize(self) -> None:
        """Wipe and recreate the sandbox root.

        Only runs once; later calls return immediately.

        Raises:
            SandboxError: If the root cannot be deleted or created.
        """
        if self._storage is not None:
            return

        with self._init_lock:
            # Check again after acquiring lock to prevent race
            if self._storage is not None:
                return

            try:
                storage = NativeStorage(self._root, create=False)
                storage.delete_directory("")
                self._root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SandboxError(f"Unable to prepare sandbox at {self._root}: {e}") from e

            logger.info(f"Initialized test sandbox at {self._root}")
            self._storage = NativeStorage(self._root)

    def directory_for(self, identity: str) -> NativeStorage:
        """Return the storage for a test identity, creating it if absent.

        Raises:
            ValueError: If identity is empty.
            SandboxError: If the directory cannot be created.
        """
        name = sanitize_identity(identity)

        self.initialize()
        assert self._storage is not None

        try:
            return self._storage.get_storage_for_directory(name)
        except OSError as e:
            raise SandboxError(f"Unable to create test directory {name!r}: {e}") from e


def sanitize_identity(identity: str) -> str:
    """Turn a test identity into a single, portable directory name.

    Identities that are already safe are used as-is. Any other identity
    gets a short digest of its raw form appended, so two identities that
    sanitize to the same text still land in different directories.

    Raises:
        ValueError: If identity is empty or only dots.
    """
    name = _UNSAFE_CHARS.sub("_", identity.strip()) if identity else ""
    if not name or set(name) == {"."}:
        raise ValueError(f"Invalid test identity: {identity!r}")
    if name != identity:
        digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()[:8]
        name = f"{name}-{digest}"
    return name
