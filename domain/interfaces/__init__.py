"""Abstract interfaces for the MaterialSearch retrieval engine."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator, Mapping, Sequence

from domain.entities import (
    CandidateResult,
    CatalogRecord,
    CollectionRef,
    QueryClassification,
    StrategyName,
    VectorHit,
    VectorRecord,
)


class Embedder(ABC):
    """Turns text (chunks or queries) into vector embeddings."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Return the stable identifier for this embedding model."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension for this model."""

    @abstractmethod
    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed chunk texts into dense vectors."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed a query variant for retrieval."""


class VectorIndex(ABC):
    """Namespaced vector index with metadata filtering.

    Filters use a small Mongo-like dialect: `{"field": value}`,
    `{"field": {"$in": [...]}}`, `{"field": {"$eq": value}}` and
    `{"$or": [filter, ...]}`. List-valued metadata matches when any element
    matches.
    """

    @abstractmethod
    def upsert(self, records: Sequence[VectorRecord], *, namespace: str) -> None:
        """Insert or replace vectors in a namespace."""

    @abstractmethod
    def query(
        self,
        vector: Sequence[float] | None,
        *,
        top_k: int,
        namespace: str,
        metadata_filter: Mapping[str, Any] | None = None,
    ) -> list[VectorHit]:
        """Return the best hits; with `vector=None` only the filter applies."""

    @abstractmethod
    def delete(self, *, namespace: str, metadata_filter: Mapping[str, Any]) -> int:
        """Remove every vector matching the filter and return how many went."""


class CatalogStore(ABC):
    """Document store holding catalog records per collection."""

    @abstractmethod
    def add(self, record: CatalogRecord, *, collection: str) -> None:
        """Insert or replace a record."""

    @abstractmethod
    def get(self, record_id: str, *, collection: str) -> CatalogRecord | None:
        """Retrieve a record by id."""

    @abstractmethod
    def get_by_code_or_name(self, text: str, *, collection: str) -> list[CatalogRecord]:
        """Return records whose code or names equal or contain `text`, ignoring case."""

    @abstractmethod
    def iter_records(self, *, collection: str, page_size: int = 500) -> Iterator[CatalogRecord]:
        """Stream every record of a collection, page by page."""


class RetrievalStrategy(ABC):
    """One independent retrieval method."""

    name: StrategyName

    @abstractmethod
    def search(
        self,
        expanded_queries: Sequence[str],
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        """Return scored candidates; an empty list is a valid answer.

        Raises `CollaboratorUnavailable` only when the backing collaborator
        cannot be reached.
        """


__all__ = [
    "CatalogStore",
    "Embedder",
    "RetrievalStrategy",
    "VectorIndex",
]
