"""Merge candidates from several strategies into one deduplicated ranking."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from domain.entities import CandidateResult, ContributingMatch, SearchResult, StrategyName

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_WEIGHTS: dict[StrategyName, float] = {
    StrategyName.EXACT: 1.0,
    StrategyName.METADATA: 0.9,
    StrategyName.FUZZY: 0.85,
    StrategyName.SEMANTIC: 0.75,
}

# Candidate metadata copied onto the fused result for presentation.
_DISPLAY_KEYS = ("canonical_code", "display_name", "alt_name", "supplier")


@dataclass(slots=True)
class FusionConfig:
    strategy_weights: dict[StrategyName, float] = field(default_factory=lambda: dict(DEFAULT_STRATEGY_WEIGHTS))
    max_results: int = 10

    def __post_init__(self) -> None:
        missing = set(StrategyName) - set(self.strategy_weights)
        if missing:
            raise ValueError(f"Missing strategy weights for: {sorted(s.value for s in missing)}")
        for strategy, weight in self.strategy_weights.items():
            if not 0.0 < weight <= 1.0:
                raise ValueError(f"Weight for {strategy.value} must be within (0, 1].")
        if self.max_results <= 0:
            raise ValueError("max_results must be positive.")


def rank_key(result: SearchResult) -> tuple[float, bool, int, str]:
    """Score first, then exact presence, strategy count and record id."""

    return (-result.fused_score, not result.has_exact, -len(result.strategies), result.record_id)


class ResultFusion:
    """Max-of-boosted-scores fusion with strict per-record deduplication."""

    def __init__(self, config: FusionConfig | None = None) -> None:
        self._config = config or FusionConfig()

    @property
    def config(self) -> FusionConfig:
        return self._config

    def boost(self, candidate: CandidateResult) -> float:
        raw = min(1.0, max(0.0, candidate.raw_score))
        return round(raw * self._config.strategy_weights[candidate.match_type], 6)

    def fuse(
        self,
        candidates_by_strategy: Mapping[StrategyName, Sequence[CandidateResult]],
        *,
        max_results: int | None = None,
    ) -> list[SearchResult]:
        groups: dict[str, list[CandidateResult]] = {}
        for strategy in sorted(candidates_by_strategy, key=lambda item: item.value):
            for candidate in candidates_by_strategy[strategy]:
                groups.setdefault(candidate.record_id, []).append(candidate)

        results = [self._fuse_group(record_id, group) for record_id, group in groups.items()]
        results.sort(key=rank_key)
        limit = max_results if max_results is not None else self._config.max_results
        logger.debug("Fused %d records from %d strategies", len(results), len(candidates_by_strategy))
        return results[: max(0, limit)]

    def _fuse_group(self, record_id: str, group: list[CandidateResult]) -> SearchResult:
        matches = [
            ContributingMatch(
                match_type=candidate.match_type,
                raw_score=candidate.raw_score,
                boosted_score=self.boost(candidate),
                collection=candidate.collection,
                matched_chunk_type=candidate.matched_chunk_type,
            )
            for candidate in group
        ]
        matches.sort(key=lambda match: (-match.boosted_score, match.match_type.value, match.collection or ""))
        metadata: dict[str, object] = {}
        for candidate in group:
            for key in _DISPLAY_KEYS:
                if key not in metadata and candidate.metadata.get(key):
                    metadata[key] = candidate.metadata[key]
        return SearchResult(
            record_id=record_id,
            fused_score=round(min(1.0, matches[0].boosted_score), 6),
            contributing_matches=matches,
            source_collection=matches[0].collection,
            record=next((candidate.record for candidate in group if candidate.record is not None), None),
            metadata=metadata,
        )


__all__ = ["DEFAULT_STRATEGY_WEIGHTS", "FusionConfig", "ResultFusion", "rank_key"]
