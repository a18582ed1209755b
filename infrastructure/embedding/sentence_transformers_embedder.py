"""Multilingual embedders backed by sentence-transformers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sentence_transformers import SentenceTransformer

from domain.interfaces import Embedder

logger = logging.getLogger(__name__)

DEFAULT_MULTILINGUAL_MODEL = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"

# E5 models are trained with role prefixes and degrade noticeably without them.
_E5_PREFIXES = ("query: ", "passage: ")


@dataclass(slots=True)
class SentenceTransformersConfig:
    model_name: str = DEFAULT_MULTILINGUAL_MODEL
    device: str = "cpu"
    normalize_embeddings: bool = True
    batch_size: int = 32
    query_prefix: str | None = None
    passage_prefix: str | None = None

    def __post_init__(self) -> None:
        if "e5" in self.model_name.lower() and self.query_prefix is None and self.passage_prefix is None:
            self.query_prefix, self.passage_prefix = _E5_PREFIXES


class SentenceTransformersEmbedder(Embedder):
    """Thai and English text share one vector space with the default model."""

    def __init__(self, config: SentenceTransformersConfig | None = None) -> None:
        self._config = config or SentenceTransformersConfig()
        logger.info("Loading sentence-transformers model %s on %s", self._config.model_name, self._config.device)
        self._model = SentenceTransformer(self._config.model_name, device=self._config.device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())

    @property
    def model_id(self) -> str:
        return self._config.model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    def _encode(self, texts: Sequence[str], prefix: str | None) -> list[list[float]]:
        inputs = [f"{prefix}{text}" if prefix else text for text in texts]
        vectors = self._model.encode(
            inputs,
            batch_size=min(self._config.batch_size, max(len(inputs), 1)),
            normalize_embeddings=self._config.normalize_embeddings,
            show_progress_bar=False,
        )
        return vectors.tolist()

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        logger.debug("Encoding %d chunks with %s", len(texts), self._config.model_name)
        return self._encode(texts, self._config.passage_prefix)

    def embed_query(self, text: str) -> list[float]:
        return self._encode([text], self._config.query_prefix)[0]


__all__ = ["DEFAULT_MULTILINGUAL_MODEL", "SentenceTransformersConfig", "SentenceTransformersEmbedder"]
