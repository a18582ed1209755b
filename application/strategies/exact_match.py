"""Exact/substring lookup of extracted codes and names against the catalog store."""
from __future__ import annotations

from typing import Sequence

from application.services.text_normalization import is_code_fragment, normalize_code, normalize_tag
from application.strategies.base import BaseStrategy, StrategyConfig
from domain.entities import CandidateResult, CatalogRecord, CollectionRef, QueryClassification, StrategyName
from domain.interfaces import CatalogStore


class ExactMatchStrategy(BaseStrategy):
    """Score 1.0 on case-insensitive field equality, 0.9 on substring.

    Code substrings need a code-shaped term and name substrings at least three characters.
    """

    name = StrategyName.EXACT

    def __init__(self, catalog_store: CatalogStore, config: StrategyConfig | None = None) -> None:
        super().__init__(config)
        self._store = catalog_store

    def search(
        self,
        expanded_queries: Sequence[str],
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        entities = classification.extracted_entities
        terms = [*entities.codes, *entities.names]
        if not terms and classification.normalized_query:
            terms = [classification.normalized_query]

        best: dict[str, CandidateResult] = {}
        for term in terms:
            records = self._call("catalog store", self._store.get_by_code_or_name, term, collection=collection.name)
            for record in records:
                score = self._score(term, record)
                if score is None:
                    continue
                current = best.get(record.id)
                if current is None or score > current.raw_score:
                    best[record.id] = CandidateResult(
                        record_id=record.id,
                        raw_score=score,
                        match_type=self.name,
                        collection=collection.name,
                        record=record,
                        metadata={"matched_term": term},
                    )
        return sorted(best.values(), key=lambda item: (-item.raw_score, item.record_id))

    def _score(self, term: str, record: CatalogRecord) -> float | None:
        cfg = self._config
        code_term = normalize_code(term)
        name_term = normalize_tag(term)
        record_code = normalize_code(record.canonical_code) if record.canonical_code else ""
        names = [normalize_tag(name) for name in (record.display_name, record.alt_name) if name]

        if (record_code and record_code == code_term) or name_term in names:
            return cfg.exact_equal_score
        if record_code and is_code_fragment(code_term) and code_term in record_code:
            return cfg.exact_substring_score
        if len(name_term) >= 3 and any(name_term in name for name in names):
            return cfg.exact_substring_score
        return None


__all__ = ["ExactMatchStrategy"]
