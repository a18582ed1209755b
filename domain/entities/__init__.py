"""Domain entities for the MaterialSearch retrieval engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from domain.errors import AllStrategiesFailed


class ChunkType(str, Enum):
    """Kinds of searchable representations derived from one catalog record."""

    PRIMARY_IDENTIFIER = "primary_identifier"
    CODE_ONLY = "code_only"
    TECHNICAL = "technical"
    COMMERCIAL = "commercial"
    DESCRIPTIVE = "descriptive"
    COMBINED_CONTEXT = "combined_context"
    LOCALIZED = "localized"


class QueryIntent(str, Enum):
    EXACT_CODE = "exact_code"
    NAME_SEARCH = "name_search"
    PROPERTY_SEARCH = "property_search"
    GENERIC = "generic"


class StrategyName(str, Enum):
    EXACT = "exact"
    METADATA = "metadata"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


class RoutingMode(str, Enum):
    SINGLE_RESTRICTED = "single_restricted"
    SINGLE_FULL = "single_full"
    MERGED_PRIORITIZED = "merged_prioritized"


class CollectionHint(str, Enum):
    """Out-of-band routing override supplied by a caller."""

    AVAILABLE = "available"
    FULL = "full"
    BOTH = "both"


class Availability(str, Enum):
    READY_NOW = "ready_now"
    ORDERABLE = "orderable"


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class CatalogRecord:
    """Source-of-truth entry for one ingredient/material."""

    id: str
    canonical_code: str | None = None
    display_name: str | None = None
    alt_name: str | None = None
    category: list[str] = field(default_factory=list)
    function: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    supplier: str | None = None
    cost: str | None = None
    description: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CatalogRecord":
        """Build a record from loosely typed input (JSON rows, API payloads).

        List fields accept either a sequence or a comma separated string.
        """

        return cls(
            id=str(data.get("id") or "").strip(),
            canonical_code=_as_text(data.get("canonical_code")),
            display_name=_as_text(data.get("display_name")),
            alt_name=_as_text(data.get("alt_name")),
            category=_as_list(data.get("category")),
            function=_as_list(data.get("function")),
            benefits=_as_list(data.get("benefits")),
            supplier=_as_text(data.get("supplier")),
            cost=_as_text(data.get("cost")),
            description=_as_text(data.get("description")),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "canonical_code": self.canonical_code,
            "display_name": self.display_name,
            "alt_name": self.alt_name,
            "category": list(self.category),
            "function": list(self.function),
            "benefits": list(self.benefits),
            "supplier": self.supplier,
            "cost": self.cost,
            "description": self.description,
        }


@dataclass(slots=True, frozen=True)
class Chunk:
    """A weighted text fragment derived from exactly one catalog record."""

    id: str
    source_record_id: str
    chunk_type: ChunkType
    text: str
    priority_weight: float
    language: str | None = None


@dataclass(slots=True, frozen=True)
class ExtractedEntities:
    codes: tuple[str, ...] = ()
    names: tuple[str, ...] = ()
    properties: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class QueryClassification:
    """Per-query classification consumed by routing and the strategies."""

    query: str
    normalized_query: str
    intent: QueryIntent
    confidence: float
    extracted_entities: ExtractedEntities
    expanded_queries: tuple[str, ...]
    recommended_strategies: tuple[StrategyName, ...]
    language: str = "english"
    detected_patterns: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class CollectionRef:
    """A logical catalog partition, addressed by vector index namespace."""

    name: str
    namespace: str
    is_available: bool = False


@dataclass(slots=True, frozen=True)
class RoutingDecision:
    mode: RoutingMode
    collections: tuple[CollectionRef, ...]
    reason: str = ""
    matched_keywords: tuple[str, ...] = ()


@dataclass(slots=True)
class CandidateResult:
    """One strategy's scored hit; `raw_score` is on the strategy's own scale."""

    record_id: str
    raw_score: float
    match_type: StrategyName
    matched_chunk_type: ChunkType | None = None
    collection: str | None = None
    record: CatalogRecord | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ContributingMatch:
    match_type: StrategyName
    raw_score: float
    boosted_score: float
    collection: str | None = None
    matched_chunk_type: ChunkType | None = None


@dataclass(slots=True)
class SearchResult:
    """Final, cross-strategy comparable result for one record."""

    record_id: str
    fused_score: float
    contributing_matches: list[ContributingMatch] = field(default_factory=list)
    source_collection: str | None = None
    availability: Availability | None = None
    record: CatalogRecord | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_exact(self) -> bool:
        return any(match.match_type is StrategyName.EXACT for match in self.contributing_matches)

    @property
    def strategies(self) -> set[StrategyName]:
        return {match.match_type for match in self.contributing_matches}


@dataclass(slots=True, frozen=True)
class StrategyFailure:
    """A strategy task that failed or timed out against one collection."""

    strategy: StrategyName
    collection: str
    reason: str
    timed_out: bool = False


@dataclass(slots=True)
class VectorRecord:
    id: str
    vector: list[float]
    chunk_type: ChunkType
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class VectorHit:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SearchOutcome:
    """Typed outcome of one search call.

    Empty `results` with no `error` means nothing matched; a set `error` means
    every launched strategy failed and the search is temporarily unavailable.
    """

    query: str
    results: list[SearchResult] = field(default_factory=list)
    classification: QueryClassification | None = None
    routing: RoutingDecision | None = None
    failures: list[StrategyFailure] = field(default_factory=list)
    error: AllStrategiesFailed | None = None
    latency_ms: float = 0.0

    @property
    def unavailable(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return not self.results

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "unavailable"
        if not self.results:
            return "no_results"
        return "ok"


__all__ = [
    "Availability",
    "CandidateResult",
    "CatalogRecord",
    "Chunk",
    "ChunkType",
    "CollectionHint",
    "CollectionRef",
    "ContributingMatch",
    "ExtractedEntities",
    "QueryClassification",
    "QueryIntent",
    "RoutingDecision",
    "RoutingMode",
    "SearchOutcome",
    "SearchResult",
    "StrategyFailure",
    "StrategyName",
    "VectorHit",
    "VectorRecord",
]
