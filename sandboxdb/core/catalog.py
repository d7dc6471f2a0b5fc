"""Catalog persistence on top of the document database port.

A catalog entry is stored as three kinds of documents:

- ``catalog_entries``: the entry with its metadata, ordered variant ids
  and the filenames of its attached files
- ``variants``: one document per variant, referencing its entry
- ``files``: one document per stored file, keyed by content hash, so the
  same content is only stored once
"""

import logging
from typing import Any

from .models import CatalogEntry, EntryMetadata, NamedFile, StoredFile, Variant, VariantSource
from .ports import DatabasePort

logger = logging.getLogger(__name__)

ENTRIES = "catalog_entries"
VARIANTS = "variants"
FILES = "files"


class CatalogRepository:
    """Reads and writes catalog entry graphs through a DatabasePort."""

    def __init__(self, database: DatabasePort):
        self.database = database

    def add(self, entry: CatalogEntry) -> None:
        """Store an entry, its variants and its files in one transaction."""
        with self.database.write():
            for named in entry.files:
                self.database.put(FILES, named.file.hash, {"hash": named.file.hash})
            for variant in entry.variants:
                self.database.put(VARIANTS, variant.id, self._serialize_variant(entry, variant))
            self.database.put(ENTRIES, entry.id, self._serialize_entry(entry))

        logger.debug(
            f"Stored catalog entry {entry.id} with {len(entry.variants)} variants "
            f"and {len(entry.files)} files"
        )

    async def add_async(self, entry: CatalogEntry) -> None:
        """Store an entry without blocking the event loop.

        The entry document is written last, so a reader never sees an
        entry whose variants are missing.
        """
        for named in entry.files:
            await self.database.put_async(FILES, named.file.hash, {"hash": named.file.hash})
        for variant in entry.variants:
            await self.database.put_async(
                VARIANTS, variant.id, self._serialize_variant(entry, variant)
            )
        await self.database.put_async(ENTRIES, entry.id, self._serialize_entry(entry))

    def get(self, entry_id: str) -> CatalogEntry | None:
        """Load a single entry graph by id."""
        document = self.database.get(ENTRIES, entry_id)
        if document is None:
            return None
        return self._deserialize_entry(document)

    def all_entries(self) -> list[CatalogEntry]:
        """Load every stored entry with variants and back-references rebuilt."""
        return [self._deserialize_entry(doc) for doc in self.database.all(ENTRIES)]

    def count_entries(self) -> int:
        return self.database.count(ENTRIES)

    def count_variants(self) -> int:
        return self.database.count(VARIANTS)

    def count_files(self) -> int:
        return self.database.count(FILES)

    async def count_entries_async(self) -> int:
        return await self.database.count_async(ENTRIES)

    def _deserialize_entry(self, document: dict[str, Any]) -> CatalogEntry:
        """Rebuild an entry graph from its entry document.

        Raises:
            ValueError: If the document or a referenced variant is malformed
                or missing.
        """
        try:
            metadata = EntryMetadata(**document["metadata"])
            entry = CatalogEntry(
                id=document["id"],
                metadata=metadata,
                files=[
                    NamedFile(StoredFile(hash=f["hash"]), f["filename"])
                    for f in document["files"]
                ],
            )
            for variant_id in document["variant_ids"]:
                variant_doc = self.database.get(VARIANTS, variant_id)
                if variant_doc is None:
                    raise ValueError(f"Variant {variant_id} of entry {entry.id} is missing")
                entry.variants.append(
                    Variant(
                        id=variant_doc["id"],
                        source=VariantSource(**variant_doc["source"]),
                        metadata=metadata,
                        label=variant_doc["label"],
                        entry=entry,
                    )
                )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed catalog entry document: {e}") from e
        return entry

    @staticmethod
    def _serialize_entry(entry: CatalogEntry) -> dict[str, Any]:
        return {
            "id": entry.id,
            "metadata": {"title": entry.metadata.title, "artist": entry.metadata.artist},
            "variant_ids": [variant.id for variant in entry.variants],
            "files": [
                {"filename": named.filename, "hash": named.file.hash}
                for named in entry.files
            ],
        }

    @staticmethod
    def _serialize_variant(entry: CatalogEntry, variant: Variant) -> dict[str, Any]:
        return {
            "id": variant.id,
            "entry_id": entry.id,
            "label": variant.label,
            "source": {
                "online_id": variant.source.online_id,
                "name": variant.source.name,
                "short_name": variant.source.short_name,
                "available": variant.source.available,
            },
        }
