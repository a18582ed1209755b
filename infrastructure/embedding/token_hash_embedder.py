"""Bag-of-tokens embedder for tests and offline runs."""
from __future__ import annotations

import hashlib
import re
from typing import Sequence

import numpy as np

from application.services.text_normalization import normalize_query
from domain.interfaces import Embedder

# Latin words and digits split on word boundaries; Thai has no spaces, so a Thai run is one token.
_TOKEN = re.compile(r"[\u0E00-\u0E7F]+|[^\W_]+")


def _token_vector(token: str, dimension: int) -> np.ndarray:
    seed = int.from_bytes(hashlib.sha256(token.encode("utf-8")).digest()[:8], "big")
    return np.random.default_rng(seed).standard_normal(dimension)


class TokenHashEmbedder(Embedder):
    """Texts sharing tokens get similar vectors; no model download needed."""

    def __init__(self, dimension: int = 32) -> None:
        self._dimension = dimension

    @property
    def model_id(self) -> str:
        return f"token-hash-{self._dimension}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def _embed(self, text: str) -> list[float]:
        tokens = _TOKEN.findall(normalize_query(text)) or [text]
        vector = np.sum([_token_vector(token, self._dimension) for token in tokens], axis=0)
        norm = float(np.linalg.norm(vector))
        if norm:
            vector = vector / norm
        return vector.tolist()

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


__all__ = ["TokenHashEmbedder"]
