"""Signed feature hashing over character n-grams."""
from __future__ import annotations

import hashlib
from typing import Iterator, Sequence

import numpy as np

from application.services.text_normalization import normalize_query
from domain.interfaces import Embedder


def iter_ngrams(text: str, sizes: Sequence[int]) -> Iterator[str]:
    for size in sizes:
        for start in range(len(text) - size + 1):
            gram = text[start : start + size]
            if gram.strip():
                yield gram


class CharacterNgramEmbedder(Embedder):
    """Shared n-grams give related strings similar vectors.

    Thai and Latin text hash the same way, which makes this the default
    embedder when no multilingual model is installed.
    """

    def __init__(self, dimension: int = 64, ngram_sizes: Sequence[int] | None = None) -> None:
        sizes = tuple(ngram_sizes or (2, 3, 4))
        if dimension <= 0 or any(size <= 0 for size in sizes):
            raise ValueError("dimension and n-gram sizes must be positive.")
        self._dimension = dimension
        self.ngram_sizes = sizes

    @property
    def model_id(self) -> str:
        return f"char-ngram-{'-'.join(map(str, self.ngram_sizes))}-{self._dimension}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def _vectorize(self, text: str) -> list[float]:
        clean = normalize_query(text)
        vector = np.zeros(self._dimension)
        grams = list(iter_ngrams(clean, self.ngram_sizes)) or [clean]
        for gram in grams:
            digest = hashlib.sha1(gram.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimension
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0
        norm = float(np.linalg.norm(vector))
        return (vector / norm if norm else vector).tolist()

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._vectorize(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vectorize(text)


__all__ = ["CharacterNgramEmbedder", "iter_ngrams"]
