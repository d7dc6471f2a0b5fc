"""Domain models for the sandboxdb harness.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from .errors import LifecycleError


@dataclass(frozen=True)
class VariantSource:
    """The rule-set a catalog variant is played under."""

    online_id: int
    name: str
    short_name: str
    available: bool

    def __post_init__(self) -> None:
        """Validate variant source invariants on creation."""
        if not self.short_name or not self.short_name.strip():
            raise ValueError("short_name must be a non-empty string")


@dataclass(frozen=True)
class EntryMetadata:
    """Free-text metadata shared by a catalog entry and its variants."""

    title: str
    artist: str


@dataclass(frozen=True)
class StoredFile:
    """A content-addressed file known to the database."""

    hash: str  # hex digest of the file content

    def __post_init__(self) -> None:
        if not self.hash:
            raise ValueError("hash must be a non-empty string")


@dataclass(frozen=True)
class NamedFile:
    """Usage of a stored file under a specific filename inside an entry."""

    file: StoredFile
    filename: str


@dataclass
class Variant:
    """A single playable variant of a catalog entry.

    The back-reference to the owning entry is excluded from repr and
    equality to avoid infinite recursion through the graph.
    """

    source: VariantSource
    metadata: EntryMetadata
    label: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    entry: "CatalogEntry | None" = field(default=None, repr=False, compare=False)


@dataclass
class CatalogEntry:
    """A catalog entry with its variants and attached file assets."""

    metadata: EntryMetadata
    variants: list[Variant] = field(default_factory=list)
    files: list[NamedFile] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class LifecycleState(Enum):
    """States a single harness run moves through.

    Transitions are strictly sequential:
    CREATED → DIRECTORY_RESOLVED → DATABASE_OPEN → BODY_EXECUTING →
    DATABASE_CLOSED → COMPACTED → DISPOSED

    A failing test body does not change the sequence; teardown still
    passes through DATABASE_CLOSED and COMPACTED before DISPOSED.
    """

    CREATED = "created"
    DIRECTORY_RESOLVED = "directory_resolved"
    DATABASE_OPEN = "database_open"
    BODY_EXECUTING = "body_executing"
    DATABASE_CLOSED = "database_closed"
    COMPACTED = "compacted"
    DISPOSED = "disposed"


LIFECYCLE_ORDER: tuple[LifecycleState, ...] = tuple(LifecycleState)


@dataclass
class LifecycleReport:
    """Diagnostics and state history of one harness run.

    Note: This dataclass is intentionally mutable; the harness fills it in
    as the run progresses on the host thread.
    """

    identity: str
    database_path: str | None = None
    size_before_compact: int = 0
    size_after_compact: int = 0
    body_failed: bool = False
    history: list[LifecycleState] = field(
        default_factory=lambda: [LifecycleState.CREATED]
    )

    @property
    def state(self) -> LifecycleState:
        """The current lifecycle state."""
        return self.history[-1]

    @property
    def completed(self) -> bool:
        """True when every state was visited in order."""
        return tuple(self.history) == LIFECYCLE_ORDER

    def advance(self, next_state: LifecycleState) -> None:
        """Move to the state directly following the current one.

        Raises:
            LifecycleError: If next_state would skip or revisit a state.
        """
        current = LIFECYCLE_ORDER.index(self.state)
        if current + 1 >= len(LIFECYCLE_ORDER) or LIFECYCLE_ORDER[current + 1] != next_state:
            raise LifecycleError(
                f"Cannot move test run {self.identity!r} from "
                f"{self.state.value} to {next_state.value}"
            )
        self.history.append(next_state)

    def dispose(self) -> None:
        """Enter the terminal DISPOSED state.

        Allowed from any non-terminal state so a run whose database never
        opened still terminates. A run that reached COMPACTED ends up
        ``completed``.
        """
        if self.state == LifecycleState.DISPOSED:
            raise LifecycleError(f"Test run {self.identity!r} is already disposed")
        self.history.append(LifecycleState.DISPOSED)
