"""Fixture builders producing catalog object graphs for tests.

Builders have no side effects: no I/O and no global state. The structure
of every graph is fixed; only identity fields (ids and content hashes)
are random, so two graphs never collide when stored side by side.
"""

import hashlib
import uuid

from .models import CatalogEntry, EntryMetadata, NamedFile, StoredFile, Variant, VariantSource

VARIANT_LABELS: tuple[str, ...] = ("Easy", "Normal", "Hard", "Insane")
AUXILIARY_FILE_COUNT = 8


def build_variant_source() -> VariantSource:
    """Return the constant rule-set used by build_catalog_graph()."""
    return VariantSource(online_id=0, name="Standard", short_name="std", available=True)


def create_stored_file() -> StoredFile:
    """Return a stored file with a fresh, unique content hash."""
    return StoredFile(hash=hashlib.sha256(str(uuid.uuid4()).encode()).hexdigest())


def build_catalog_graph(variant_source: VariantSource) -> CatalogEntry:
    """Build a complete catalog entry for use as test input.

    The entry carries:
    - Four variants labelled Easy, Normal, Hard and Insane, in that order
    - One primary file per variant, named ``test [<label>].chart``
    - Eight auxiliary files, ``sample0.wav`` to ``sample7.wav``

    Every variant references the returned entry and every file has its
    own freshly generated hash.

    Args:
        variant_source: Rule-set assigned to every variant.

    Returns:
        A CatalogEntry with variants and files attached.
    """
    metadata = EntryMetadata(title="My Love", artist="Kuba Oms")

    entry = CatalogEntry(
        metadata=metadata,
        variants=[
            Variant(source=variant_source, metadata=metadata, label=label)
            for label in VARIANT_LABELS
        ],
        files=[
            NamedFile(create_stored_file(), f"test [{label.lower()}].chart")
            for label in VARIANT_LABELS
        ],
    )

    for i in range(AUXILIARY_FILE_COUNT):
        entry.files.append(NamedFile(create_stored_file(), f"sample{i}.wav"))

    for variant in entry.variants:
        variant.entry = entry

    return entry
