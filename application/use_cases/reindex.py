"""Offline reindexing: chunk catalog records and push them to the vector index."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from application.services.query_classifier import extract_property_tags
from application.services.record_chunker import ChunkStats, RecordChunker
from application.services.text_normalization import normalize_code, normalize_tag
from domain.entities import CatalogRecord, Chunk, CollectionRef, VectorRecord
from domain.errors import MalformedRecord
from domain.interfaces import Embedder, VectorIndex

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReindexError:
    record_id: str | None
    reason: str


@dataclass(slots=True)
class ReindexReport:
    total: int
    indexed: int
    chunks: int = 0
    errors: list[ReindexError] = field(default_factory=list)
    stats: ChunkStats = field(default_factory=ChunkStats)


def chunk_metadata(record: CatalogRecord, chunk: Chunk, collection: CollectionRef) -> dict[str, Any]:
    """Metadata stored next to each chunk vector, used by filtering and display."""

    tag_text = " ".join([*record.category, *record.function, *record.benefits, record.description or ""])
    return {
        "source_record_id": record.id,
        "chunk_type": chunk.chunk_type.value,
        "priority_weight": chunk.priority_weight,
        "language": chunk.language,
        "text": chunk.text,
        "collection": collection.name,
        "canonical_code": normalize_code(record.canonical_code) if record.canonical_code else None,
        "display_name": record.display_name,
        "alt_name": record.alt_name,
        "supplier": record.supplier,
        "category": [normalize_tag(value) for value in record.category],
        "function": [normalize_tag(value) for value in record.function],
        "benefits": [normalize_tag(value) for value in record.benefits],
        "properties": extract_property_tags(tag_text),
    }


class ReindexService:
    def __init__(self, *, chunker: RecordChunker, embedder: Embedder, vector_index: VectorIndex) -> None:
        self._chunker = chunker
        self._embedder = embedder
        self._vector_index = vector_index

    def reindex(self, record: CatalogRecord, collection: CollectionRef) -> list[Chunk]:
        """Replace every chunk of `record` in the collection's namespace.

        Raises `MalformedRecord` before touching the index when identity fields are missing.
        """

        chunks = self._chunker.chunk(record)
        removed = self._vector_index.delete(
            namespace=collection.namespace,
            metadata_filter={"source_record_id": record.id},
        )
        vectors = self._embedder.embed_texts([chunk.text for chunk in chunks])
        self._vector_index.upsert(
            [
                VectorRecord(
                    id=chunk.id,
                    vector=list(vector),
                    chunk_type=chunk.chunk_type,
                    metadata=chunk_metadata(record, chunk, collection),
                )
                for chunk, vector in zip(chunks, vectors)
            ],
            namespace=collection.namespace,
        )
        logger.debug(
            "Reindexed %s in %s: %d chunks (%d replaced)", record.id, collection.namespace, len(chunks), removed
        )
        return chunks

    def reindex_batch(self, records: Iterable[CatalogRecord], collection: CollectionRef) -> ReindexReport:
        total = 0
        indexed = 0
        all_chunks: list[Chunk] = []
        errors: list[ReindexError] = []
        for record in records:
            total += 1
            try:
                all_chunks.extend(self.reindex(record, collection))
            except MalformedRecord as exc:
                logger.warning("Skipping record: %s", exc)
                errors.append(ReindexError(record_id=exc.record_id, reason=exc.reason))
                continue
            indexed += 1

        stats = RecordChunker.chunk_stats(all_chunks)
        logger.info(
            "Reindexed %d/%d records into %s: %d chunks, by type %s",
            indexed,
            total,
            collection.namespace,
            stats.total,
            stats.by_type,
        )
        return ReindexReport(total=total, indexed=indexed, chunks=len(all_chunks), errors=errors, stats=stats)


__all__ = ["ReindexError", "ReindexReport", "ReindexService", "chunk_metadata"]
