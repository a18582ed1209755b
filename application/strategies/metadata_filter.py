"""Structured metadata filtering through the vector index."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from application.services.text_normalization import normalize_code, normalize_tag
from application.strategies.base import BaseStrategy, StrategyConfig
from domain.entities import (
    CandidateResult,
    ChunkType,
    CollectionRef,
    QueryClassification,
    StrategyName,
)
from domain.interfaces import VectorIndex

logger = logging.getLogger(__name__)

TAG_FIELDS = ("category", "function", "benefits")


def build_metadata_filter(classification: QueryClassification) -> dict[str, Any] | None:
    """Translate extracted codes and properties into an index filter, or None."""

    entities = classification.extracted_entities
    clauses: list[dict[str, Any]] = []
    if entities.codes:
        clauses.append({"canonical_code": {"$in": [normalize_code(code) for code in entities.codes]}})
    if entities.properties:
        tags = [normalize_tag(prop) for prop in entities.properties]
        clauses.append({"properties": {"$in": tags}})
        clauses.extend({field_name: {"$in": tags}} for field_name in TAG_FIELDS)
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


class MetadataFilterStrategy(BaseStrategy):
    """Boolean structural match; the similarity score of this path is ignored."""

    name = StrategyName.METADATA

    def __init__(self, vector_index: VectorIndex, config: StrategyConfig | None = None) -> None:
        super().__init__(config)
        self._index = vector_index

    def search(
        self,
        expanded_queries: Sequence[str],
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        metadata_filter = build_metadata_filter(classification)
        if metadata_filter is None:
            return []
        hits = self._call(
            "vector index",
            self._index.query,
            None,
            top_k=self._config.metadata_top_k,
            namespace=collection.namespace,
            metadata_filter=metadata_filter,
        )
        results: dict[str, CandidateResult] = {}
        for hit in hits:
            record_id = hit.metadata.get("source_record_id")
            if not record_id or record_id in results:
                continue
            chunk_type = hit.metadata.get("chunk_type")
            results[record_id] = CandidateResult(
                record_id=record_id,
                raw_score=self._config.metadata_score,
                match_type=self.name,
                matched_chunk_type=ChunkType(chunk_type) if chunk_type else None,
                collection=collection.name,
                metadata=dict(hit.metadata),
            )
        logger.debug("Metadata filter %s matched %d records in %s", metadata_filter, len(results), collection.name)
        return sorted(results.values(), key=lambda item: item.record_id)


__all__ = ["MetadataFilterStrategy", "TAG_FIELDS", "build_metadata_filter"]
