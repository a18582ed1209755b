"""FAISS-backed vector index with namespaces, metadata and optional persistence."""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import faiss
import numpy as np

from domain.entities import VectorHit, VectorRecord
from domain.interfaces import VectorIndex
from infrastructure.storage.metadata_filter import matches_filter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Namespace:
    index: faiss.IndexIDMap2
    ids: dict[str, int] = field(default_factory=dict)
    keys: dict[int, str] = field(default_factory=dict)
    metadata: dict[int, dict[str, Any]] = field(default_factory=dict)
    next_id: int = 0


class FaissVectorIndex(VectorIndex):
    """Inner-product FAISS index per namespace; cosine when vectors are normalized.

    String chunk ids are mapped to the int64 ids FAISS requires. Metadata
    lives beside the index and filters are applied to the scored candidates.
    """

    def __init__(
        self,
        *,
        dimension: int,
        index_root: str | Path | None = None,
        normalize_embeddings: bool = True,
    ) -> None:
        self._dimension = dimension
        self._index_root = Path(index_root) if index_root is not None else None
        self._normalize_embeddings = normalize_embeddings
        self._namespaces: dict[str, _Namespace] = {}
        self._lock = threading.RLock()

    def _namespace(self, namespace: str) -> _Namespace:
        with self._lock:
            existing = self._namespaces.get(namespace)
            if existing is None:
                existing = self._load_or_create(namespace)
                self._namespaces[namespace] = existing
            return existing

    def _paths(self, namespace: str) -> tuple[Path, Path]:
        assert self._index_root is not None
        directory = self._index_root / namespace
        return directory / "faiss.index", directory / "metadata.json"

    def _load_or_create(self, namespace: str) -> _Namespace:
        if self._index_root is not None:
            index_path, meta_path = self._paths(namespace)
            if index_path.exists() and meta_path.exists():
                stored = json.loads(meta_path.read_text(encoding="utf-8"))
                if stored.get("dimension") != self._dimension:
                    raise ValueError("FAISS namespace dimension mismatch.")
                index = faiss.read_index(str(index_path))
                if not isinstance(index, faiss.IndexIDMap2):
                    index = faiss.IndexIDMap2(index)
                keys = {int(key): value for key, value in stored["keys"].items()}
                logger.info("Loaded FAISS namespace %s with %d vectors", namespace, index.ntotal)
                return _Namespace(
                    index=index,
                    ids={value: key for key, value in keys.items()},
                    keys=keys,
                    metadata={int(key): value for key, value in stored["metadata"].items()},
                    next_id=int(stored["next_id"]),
                )
        return _Namespace(index=faiss.IndexIDMap2(faiss.IndexFlatIP(self._dimension)))

    def _persist(self, namespace: str, state: _Namespace) -> None:
        if self._index_root is None:
            return
        index_path, meta_path = self._paths(namespace)
        index_path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(state.index, str(index_path))
        payload = {
            "dimension": self._dimension,
            "next_id": state.next_id,
            "keys": {str(key): value for key, value in state.keys.items()},
            "metadata": {str(key): value for key, value in state.metadata.items()},
        }
        meta_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

    def _vectors(self, vectors: Sequence[Sequence[float]]) -> np.ndarray:
        array = np.array(vectors, dtype="float32")
        if self._normalize_embeddings:
            faiss.normalize_L2(array)
        return array

    def _remove(self, state: _Namespace, int_ids: list[int]) -> None:
        if not int_ids:
            return
        state.index.remove_ids(np.array(int_ids, dtype="int64"))
        for int_id in int_ids:
            key = state.keys.pop(int_id)
            state.ids.pop(key, None)
            state.metadata.pop(int_id, None)

    def upsert(self, records: Sequence[VectorRecord], *, namespace: str) -> None:
        if not records:
            return
        if any(len(record.vector) != self._dimension for record in records):
            raise ValueError("Embedding dimension does not match FAISS index.")
        with self._lock:
            state = self._namespace(namespace)
            self._remove(state, [state.ids[record.id] for record in records if record.id in state.ids])
            int_ids: list[int] = []
            for record in records:
                int_id = state.next_id
                state.next_id += 1
                state.ids[record.id] = int_id
                state.keys[int_id] = record.id
                state.metadata[int_id] = {**record.metadata, "chunk_type": record.chunk_type.value}
                int_ids.append(int_id)
            state.index.add_with_ids(
                self._vectors([record.vector for record in records]),
                np.array(int_ids, dtype="int64"),
            )
            self._persist(namespace, state)

    def query(
        self,
        vector: Sequence[float] | None,
        *,
        top_k: int,
        namespace: str,
        metadata_filter: Mapping[str, Any] | None = None,
    ) -> list[VectorHit]:
        state = self._namespace(namespace)
        with self._lock:
            if vector is None:
                matching = sorted(
                    (state.keys[int_id], int_id)
                    for int_id, metadata in state.metadata.items()
                    if matches_filter(metadata, metadata_filter)
                )
                return [
                    VectorHit(id=key, score=0.0, metadata=dict(state.metadata[int_id]))
                    for key, int_id in matching[:top_k]
                ]
            if state.index.ntotal == 0:
                return []
            # With a filter, rank everything and filter afterwards.
            k = state.index.ntotal if metadata_filter else min(top_k, state.index.ntotal)
            scores, ids = state.index.search(self._vectors([vector]), k)
            hits: list[VectorHit] = []
            for score, int_id in zip(scores[0], ids[0]):
                if int_id < 0:
                    continue
                metadata = state.metadata.get(int(int_id))
                if metadata is None or not matches_filter(metadata, metadata_filter):
                    continue
                hits.append(VectorHit(id=state.keys[int(int_id)], score=float(score), metadata=dict(metadata)))
                if len(hits) >= top_k:
                    break
            return hits

    def delete(self, *, namespace: str, metadata_filter: Mapping[str, Any]) -> int:
        with self._lock:
            state = self._namespace(namespace)
            doomed = [int_id for int_id, metadata in state.metadata.items() if matches_filter(metadata, metadata_filter)]
            self._remove(state, doomed)
            if doomed:
                self._persist(namespace, state)
            return len(doomed)

    def count(self, namespace: str) -> int:
        return int(self._namespace(namespace).index.ntotal)


__all__ = ["FaissVectorIndex"]
