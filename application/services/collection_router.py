"""Route queries across the "available now" and "full catalog" collections."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Sequence

from application.services.result_fusion import rank_key
from application.services.text_normalization import contains_thai
from domain.entities import (
    Availability,
    CollectionHint,
    CollectionRef,
    QueryClassification,
    RoutingDecision,
    RoutingMode,
    SearchResult,
)

logger = logging.getLogger(__name__)

AVAILABLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "en": (
        "in stock",
        "available now",
        "available",
        "ready now",
        "inventory",
        "stock",
        "can buy",
        "purchase",
    ),
    "th": (
        "มีในสต็อก",
        "มีอยู่",
        "สต็อก",
        "ของที่มี",
        "ซื้อได้",
        "สั่งได้",
        "พร้อมส่ง",
        "มีของ",
    ),
}

FULL_CATALOG_KEYWORDS: dict[str, tuple[str, ...]] = {
    "en": (
        "all ingredients",
        "all materials",
        "full catalog",
        "entire catalog",
        "any ingredient",
        "fda",
        "registered",
        "approved",
        "explore",
        "search all",
    ),
    "th": (
        "วัตถุดิบทั้งหมด",
        "ทุกวัตถุดิบ",
        "หาทั้งหมด",
        "ค้นหาทั้งหมด",
    ),
}


@dataclass(slots=True)
class RouterConfig:
    available_collection: CollectionRef | None = field(
        default_factory=lambda: CollectionRef(name="in_stock", namespace="in_stock", is_available=True)
    )
    full_collection: CollectionRef | None = field(
        default_factory=lambda: CollectionRef(name="all_fda", namespace="all_fda", is_available=False)
    )
    available_bonus: float = 0.05
    available_keywords: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(AVAILABLE_KEYWORDS))
    full_keywords: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(FULL_CATALOG_KEYWORDS))

    def __post_init__(self) -> None:
        if self.available_collection is None and self.full_collection is None:
            raise ValueError("At least one collection must be configured.")
        if not 0.0 <= self.available_bonus <= 1.0:
            raise ValueError("available_bonus must be within [0, 1].")


def _compile(terms: dict[str, tuple[str, ...]]) -> list[tuple[str, re.Pattern[str]]]:
    compiled = []
    for language_terms in terms.values():
        for term in language_terms:
            if contains_thai(term):
                compiled.append((term, re.compile(re.escape(term))))
            else:
                compiled.append((term, re.compile(r"\b" + re.escape(term).replace(r"\ ", r"\s+") + r"\b")))
    return compiled


def collection_stats(results: Sequence[SearchResult]) -> dict[str, float]:
    total = len(results)
    ready = sum(1 for result in results if result.availability is Availability.READY_NOW)
    orderable = sum(1 for result in results if result.availability is Availability.ORDERABLE)
    return {
        "total": total,
        "ready_now": ready,
        "orderable": orderable,
        "ready_now_pct": round(ready / total * 100, 1) if total else 0.0,
    }


class CollectionRouter:
    """Keyword-driven collection selection plus availability prioritization."""

    def __init__(self, config: RouterConfig | None = None) -> None:
        self._config = config or RouterConfig()
        self._available_patterns = _compile(self._config.available_keywords)
        self._full_patterns = _compile(self._config.full_keywords)

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def collections(self) -> tuple[CollectionRef, ...]:
        return tuple(c for c in (self._config.available_collection, self._config.full_collection) if c)

    def route(self, classification: QueryClassification, hint: CollectionHint | None = None) -> RoutingDecision:
        available = self._config.available_collection
        full = self._config.full_collection

        if available is None or full is None:
            only = available if available is not None else full
            if only is None:
                raise ValueError("At least one collection must be configured.")
            mode = RoutingMode.SINGLE_RESTRICTED if only.is_available else RoutingMode.SINGLE_FULL
            return RoutingDecision(mode=mode, collections=(only,), reason="single collection configured")

        if hint is not None:
            decision = self._from_hint(CollectionHint(hint), available, full)
            logger.info("Routing by caller hint %s -> %s", decision.mode.value, [c.name for c in decision.collections])
            return decision

        text = classification.normalized_query
        available_hits = tuple(term for term, regex in self._available_patterns if regex.search(text))
        full_hits = tuple(term for term, regex in self._full_patterns if regex.search(text))

        if available_hits and not full_hits:
            decision = RoutingDecision(
                mode=RoutingMode.SINGLE_RESTRICTED,
                collections=(available,),
                reason="query mentions availability",
                matched_keywords=available_hits,
            )
        elif full_hits and not available_hits:
            decision = RoutingDecision(
                mode=RoutingMode.SINGLE_FULL,
                collections=(full,),
                reason="query asks for the full catalog",
                matched_keywords=full_hits,
            )
        else:
            decision = RoutingDecision(
                mode=RoutingMode.MERGED_PRIORITIZED,
                collections=(available, full),
                reason="no single-collection signal" if not available_hits else "conflicting signals",
                matched_keywords=available_hits + full_hits,
            )
        logger.info("Routing %r -> %s (%s)", classification.query, decision.mode.value, decision.reason)
        return decision

    @staticmethod
    def _from_hint(hint: CollectionHint, available: CollectionRef, full: CollectionRef) -> RoutingDecision:
        if hint is CollectionHint.AVAILABLE:
            return RoutingDecision(RoutingMode.SINGLE_RESTRICTED, (available,), reason="caller hint")
        if hint is CollectionHint.FULL:
            return RoutingDecision(RoutingMode.SINGLE_FULL, (full,), reason="caller hint")
        return RoutingDecision(RoutingMode.MERGED_PRIORITIZED, (available, full), reason="caller hint")

    def prioritize(self, results: Sequence[SearchResult], decision: RoutingDecision) -> list[SearchResult]:
        """Annotate availability and, for merged routing, boost ready-now results."""

        available_names = {c.name for c in decision.collections if c.is_available}
        prioritized: list[SearchResult] = []
        for result in results:
            ready = any(match.collection in available_names for match in result.contributing_matches)
            score = result.fused_score
            source = result.source_collection
            if ready:
                source = next(
                    match.collection for match in result.contributing_matches if match.collection in available_names
                )
                if decision.mode is RoutingMode.MERGED_PRIORITIZED:
                    score = round(min(1.0, score + self._config.available_bonus), 6)
            prioritized.append(
                replace(
                    result,
                    fused_score=score,
                    source_collection=source,
                    availability=Availability.READY_NOW if ready else Availability.ORDERABLE,
                )
            )
        prioritized.sort(key=rank_key)
        return prioritized


__all__ = [
    "AVAILABLE_KEYWORDS",
    "CollectionRouter",
    "FULL_CATALOG_KEYWORDS",
    "RouterConfig",
    "collection_stats",
]
