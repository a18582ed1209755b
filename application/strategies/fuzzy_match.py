"""Approximate name matching with normalized Levenshtein similarity."""
from __future__ import annotations

import heapq
import logging
from typing import Sequence

from rapidfuzz.distance import Levenshtein

from application.services.text_normalization import normalize_tag
from application.strategies.base import BaseStrategy, StrategyConfig
from domain.entities import CandidateResult, CollectionRef, QueryClassification, StrategyName
from domain.interfaces import CatalogStore

logger = logging.getLogger(__name__)


def similarity(a: str, b: str, score_cutoff: float | None = None) -> float:
    """1 - distance / max length; 0.0 when below `score_cutoff`."""

    return Levenshtein.normalized_similarity(a, b, score_cutoff=score_cutoff)


class FuzzyMatchStrategy(BaseStrategy):
    """Scan the catalog page by page and keep names above the similarity threshold."""

    name = StrategyName.FUZZY

    def __init__(self, catalog_store: CatalogStore, config: StrategyConfig | None = None) -> None:
        super().__init__(config)
        self._store = catalog_store

    def search(
        self,
        expanded_queries: Sequence[str],
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        names = [normalize_tag(name) for name in classification.extracted_entities.names]
        if not names and len(classification.normalized_query) >= 3:
            names = [normalize_tag(classification.normalized_query)]
        if not names:
            return []
        return self._call("catalog store", self._scan, names, collection)

    def _scan(self, names: list[str], collection: CollectionRef) -> list[CandidateResult]:
        cfg = self._config
        threshold = cfg.fuzzy_threshold
        heap: list[tuple[float, str, CandidateResult]] = []
        scanned = 0
        for record in self._store.iter_records(collection=collection.name, page_size=cfg.fuzzy_page_size):
            scanned += 1
            best = 0.0
            best_field = None
            for field_name in ("display_name", "alt_name"):
                value = getattr(record, field_name)
                if not value:
                    continue
                candidate = normalize_tag(value)
                for name in names:
                    score = similarity(name, candidate, score_cutoff=threshold)
                    if score > best:
                        best, best_field = score, field_name
            if best < threshold:
                continue
            result = CandidateResult(
                record_id=record.id,
                raw_score=round(best, 6),
                match_type=self.name,
                collection=collection.name,
                record=record,
                metadata={"matched_field": best_field},
            )
            entry = (result.raw_score, record.id, result)
            if len(heap) < cfg.fuzzy_max_results:
                heapq.heappush(heap, entry)
            elif entry[:2] > heap[0][:2]:
                heapq.heapreplace(heap, entry)
        logger.debug("Fuzzy scan of %d records in %s kept %d", scanned, collection.name, len(heap))
        return [item for _, _, item in sorted(heap, key=lambda entry: (-entry[0], entry[1]))]


__all__ = ["FuzzyMatchStrategy", "similarity"]
