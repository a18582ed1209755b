"""Query-embedding cache in front of any embedder."""
from __future__ import annotations

import time
from threading import Lock
from typing import Callable, Sequence

from cachetools import TTLCache

from domain.interfaces import Embedder


class CachedEmbedder(Embedder):
    """Caches `embed_query` results per model; chunk embedding passes through.

    Entries expire after `ttl_seconds`; once `max_size` is reached the
    least recently used entry is evicted.
    """

    def __init__(
        self,
        inner: Embedder,
        *,
        max_size: int = 2048,
        ttl_seconds: float = 3600.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive.")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive.")
        self._inner = inner
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)
        self._lock = Lock()

    @property
    def model_id(self) -> str:
        return self._inner.model_id

    @property
    def dimension(self) -> int:
        return self._inner.dimension

    @property
    def cached_queries(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return self._inner.embed_texts(texts)

    def embed_query(self, text: str) -> list[float]:
        key = (self._inner.model_id, text)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return list(cached)
        vector = self._inner.embed_query(text)
        with self._lock:
            self._cache[key] = list(vector)
        return vector


__all__ = ["CachedEmbedder"]
