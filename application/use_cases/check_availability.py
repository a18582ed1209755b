"""Answer "do we have X?": stock first, full-catalog alternatives otherwise."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from application.use_cases.search import HybridSearchOrchestrator
from domain.entities import CollectionHint, SearchResult


@dataclass(slots=True)
class AvailabilityReport:
    query: str
    in_stock: bool
    details: SearchResult | None = None
    alternatives: list[SearchResult] = field(default_factory=list)
    unavailable: bool = False


async def check_availability_async(
    orchestrator: HybridSearchOrchestrator,
    code_or_name: str,
    *,
    threshold: float = 0.8,
    alternatives_top_k: int = 5,
) -> AvailabilityReport:
    stock = await orchestrator.search_async(code_or_name, top_k=1, collection_hint=CollectionHint.AVAILABLE)
    if stock.results and stock.results[0].fused_score >= threshold:
        return AvailabilityReport(query=code_or_name, in_stock=True, details=stock.results[0])

    catalog = await orchestrator.search_async(
        code_or_name,
        top_k=alternatives_top_k,
        collection_hint=CollectionHint.FULL,
    )
    return AvailabilityReport(
        query=code_or_name,
        in_stock=False,
        alternatives=list(catalog.results),
        unavailable=stock.unavailable and catalog.unavailable,
    )


def check_availability(
    orchestrator: HybridSearchOrchestrator,
    code_or_name: str,
    *,
    threshold: float = 0.8,
    alternatives_top_k: int = 5,
) -> AvailabilityReport:
    return asyncio.run(
        check_availability_async(
            orchestrator,
            code_or_name,
            threshold=threshold,
            alternatives_top_k=alternatives_top_k,
        )
    )


__all__ = ["AvailabilityReport", "check_availability", "check_availability_async"]
