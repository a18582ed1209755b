"""Ranking metrics for catalog search.

The id-based metrics score ranked record ids against labelled relevant
records. The outcome-based ones read the fused results themselves, since a
catalog search is also judged on whether in-stock records and exact code
hits surface at the top.
"""
from __future__ import annotations

import math
from typing import Sequence

from domain.entities import Availability, SearchResult


def precision_at_k(ranked_ids: list[str], relevant_ids: set[str], k: int) -> float:
    if k <= 0:
        return 0.0
    top = ranked_ids[:k]
    if not top:
        return 0.0
    return sum(1 for record_id in top if record_id in relevant_ids) / len(top)


def recall_at_k(ranked_ids: list[str], relevant_ids: set[str], k: int) -> float:
    if not relevant_ids or k <= 0:
        return 0.0
    found = {record_id for record_id in ranked_ids[:k] if record_id in relevant_ids}
    return len(found) / len(relevant_ids)


def hit_at_k(ranked_ids: list[str], relevant_ids: set[str], k: int) -> float:
    return 1.0 if any(record_id in relevant_ids for record_id in ranked_ids[:k]) else 0.0


def mrr_at_k(ranked_ids: list[str], relevant_ids: set[str], k: int) -> float:
    for rank, record_id in enumerate(ranked_ids[:k], start=1):
        if record_id in relevant_ids:
            return 1.0 / rank
    return 0.0


def ndcg_at_k(ranked_ids: list[str], gains: dict[str, int], k: int) -> float:
    """Graded NDCG with exponential gain (2^grade - 1)."""
    if k <= 0:
        return 0.0

    def dcg(ids: list[str]) -> float:
        return sum(
            (2 ** gains[record_id] - 1) / math.log2(position + 1)
            for position, record_id in enumerate(ids[:k], start=1)
            if gains.get(record_id, 0) > 0
        )

    ideal = dcg(sorted(gains, key=gains.__getitem__, reverse=True))
    return dcg(ranked_ids) / ideal if ideal else 0.0


def ready_now_at_k(results: Sequence[SearchResult], k: int) -> float:
    """Share of the top k results a user can take from stock today."""
    top = list(results[:k]) if k > 0 else []
    if not top:
        return 0.0
    return sum(1 for result in top if result.availability is Availability.READY_NOW) / len(top)


def exact_at_1(results: Sequence[SearchResult]) -> float:
    return 1.0 if results and results[0].has_exact else 0.0


def aggregate_mean(metrics: list[dict[str, float]]) -> dict[str, float]:
    if not metrics:
        return {}
    keys = sorted(set().union(*(m.keys() for m in metrics)))
    out: dict[str, float] = {}
    for key in keys:
        values = [m[key] for m in metrics if key in m]
        out[key] = sum(values) / len(values)
    return out
