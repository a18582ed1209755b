"""Embedding similarity over indexed chunks, weighted by chunk priority."""
from __future__ import annotations

from typing import Sequence

from application.strategies.base import BaseStrategy, StrategyConfig
from domain.entities import CandidateResult, ChunkType, CollectionRef, QueryClassification, StrategyName
from domain.interfaces import Embedder, VectorIndex


class SemanticSearchStrategy(BaseStrategy):
    name = StrategyName.SEMANTIC

    def __init__(self, embedder: Embedder, vector_index: VectorIndex, config: StrategyConfig | None = None) -> None:
        super().__init__(config)
        self._embedder = embedder
        self._index = vector_index

    def search(
        self,
        expanded_queries: Sequence[str],
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        best: dict[str, CandidateResult] = {}
        for variant in expanded_queries:
            if not variant.strip():
                continue
            vector = self._call("embedding provider", self._embedder.embed_query, variant)
            hits = self._call(
                "vector index",
                self._index.query,
                vector,
                top_k=self._config.semantic_top_k,
                namespace=collection.namespace,
            )
            for hit in hits:
                record_id = hit.metadata.get("source_record_id")
                if not record_id:
                    continue
                weight = float(hit.metadata.get("priority_weight", 1.0))
                score = round(min(1.0, max(0.0, hit.score)) * weight, 6)
                current = best.get(record_id)
                # One occurrence per record: the highest weighted chunk hit wins.
                if current is not None and current.raw_score >= score:
                    continue
                chunk_type = hit.metadata.get("chunk_type")
                best[record_id] = CandidateResult(
                    record_id=record_id,
                    raw_score=score,
                    match_type=self.name,
                    matched_chunk_type=ChunkType(chunk_type) if chunk_type else None,
                    collection=collection.name,
                    metadata={**hit.metadata, "chunk_id": hit.id, "query_variant": variant},
                )
        return sorted(best.values(), key=lambda item: (-item.raw_score, item.record_id))


__all__ = ["SemanticSearchStrategy"]
