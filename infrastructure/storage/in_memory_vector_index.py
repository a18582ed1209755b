"""Brute-force vector index kept in Python lists, for demos and tests."""
from __future__ import annotations

import heapq
import threading
from typing import Any, Mapping, Sequence

from domain.entities import VectorHit, VectorRecord
from domain.interfaces import VectorIndex
from infrastructure.storage.metadata_filter import matches_filter


class InMemoryVectorIndex(VectorIndex):
    """Stores vectors per namespace and searches them exhaustively."""

    def __init__(self) -> None:
        self._namespaces: dict[str, dict[str, VectorRecord]] = {}
        self._lock = threading.Lock()

    def upsert(self, records: Sequence[VectorRecord], *, namespace: str) -> None:
        with self._lock:
            entries = self._namespaces.setdefault(namespace, {})
            for record in records:
                entries[record.id] = VectorRecord(
                    id=record.id,
                    vector=list(record.vector),
                    chunk_type=record.chunk_type,
                    metadata={**record.metadata, "chunk_type": record.chunk_type.value},
                )

    def query(
        self,
        vector: Sequence[float] | None,
        *,
        top_k: int,
        namespace: str,
        metadata_filter: Mapping[str, Any] | None = None,
    ) -> list[VectorHit]:
        with self._lock:
            entries = list(self._namespaces.get(namespace, {}).values())
        candidates = [entry for entry in entries if matches_filter(entry.metadata, metadata_filter)]

        if vector is None:
            candidates.sort(key=lambda entry: entry.id)
            return [VectorHit(id=entry.id, score=0.0, metadata=dict(entry.metadata)) for entry in candidates[:top_k]]

        scored: list[tuple[float, str, VectorRecord]] = []
        for entry in candidates:
            score = self._cosine_similarity(vector, entry.vector)
            heapq.heappush(scored, (score, entry.id, entry))
            if len(scored) > top_k:
                heapq.heappop(scored)

        sorted_results = sorted(scored, key=lambda item: (-item[0], item[1]))
        return [VectorHit(id=entry.id, score=score, metadata=dict(entry.metadata)) for score, _, entry in sorted_results]

    def delete(self, *, namespace: str, metadata_filter: Mapping[str, Any]) -> int:
        with self._lock:
            entries = self._namespaces.get(namespace, {})
            doomed = [key for key, entry in entries.items() if matches_filter(entry.metadata, metadata_filter)]
            for key in doomed:
                del entries[key]
        return len(doomed)

    def count(self, namespace: str) -> int:
        with self._lock:
            return len(self._namespaces.get(namespace, {}))

    @staticmethod
    def _cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
        numerator = sum(x * y for x, y in zip(a, b))
        denom_a = sum(x * x for x in a) ** 0.5 or 1.0
        denom_b = sum(x * x for x in b) ** 0.5 or 1.0
        return numerator / (denom_a * denom_b)


__all__ = ["InMemoryVectorIndex"]
