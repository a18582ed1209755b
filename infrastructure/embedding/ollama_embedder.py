"""Embedding provider served by a local Ollama instance over HTTP."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import requests

from domain.errors import CollaboratorUnavailable
from domain.interfaces import Embedder

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OllamaEmbedderConfig:
    model: str = "nomic-embed-text"
    ollama_url: str = "http://localhost:11434"
    dimension: int = 768
    timeout: float = 10.0


class OllamaEmbedder(Embedder):
    """Calls `/api/embed`; transport failures surface as CollaboratorUnavailable."""

    def __init__(self, config: OllamaEmbedderConfig | None = None, session: requests.Session | None = None) -> None:
        self._config = config or OllamaEmbedderConfig()
        self._session = session or requests.Session()

    @property
    def model_id(self) -> str:
        return f"ollama/{self._config.model}"

    @property
    def dimension(self) -> int:
        return self._config.dimension

    def _embed(self, texts: Sequence[str]) -> list[list[float]]:
        try:
            response = self._session.post(
                f"{self._config.ollama_url}/api/embed",
                json={"model": self._config.model, "input": list(texts)},
                timeout=self._config.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise CollaboratorUnavailable("embedding provider", str(exc)) from exc
        embeddings = response.json().get("embeddings") or []
        if len(embeddings) != len(texts):
            raise CollaboratorUnavailable(
                "embedding provider",
                f"expected {len(texts)} embeddings, got {len(embeddings)}",
            )
        return [list(map(float, vector)) for vector in embeddings]

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        logger.debug("Embedding %d texts with %s", len(texts), self.model_id)
        return self._embed(texts)

    def embed_query(self, text: str) -> list[float]:
        return self._embed([text])[0]


__all__ = ["OllamaEmbedder", "OllamaEmbedderConfig"]
