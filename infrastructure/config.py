"""Dependency wiring for the MaterialSearch application."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Literal, Mapping

from application.services.collection_router import CollectionRouter
from application.services.query_classifier import QueryClassifier
from application.services.record_chunker import RecordChunker
from application.services.result_fusion import ResultFusion
from application.strategies.exact_match import ExactMatchStrategy
from application.strategies.fuzzy_match import FuzzyMatchStrategy
from application.strategies.metadata_filter import MetadataFilterStrategy
from application.strategies.semantic_search import SemanticSearchStrategy
from application.use_cases.reindex import ReindexService
from application.use_cases.search import HybridSearchOrchestrator
from domain.entities import CollectionRef, StrategyName
from domain.interfaces import CatalogStore, Embedder, RetrievalStrategy, VectorIndex
from infrastructure.embedding.cached_embedder import CachedEmbedder
from infrastructure.embedding.character_ngram_embedder import CharacterNgramEmbedder
from infrastructure.embedding.token_hash_embedder import TokenHashEmbedder
from infrastructure.embedding.ollama_embedder import OllamaEmbedder, OllamaEmbedderConfig
from infrastructure.repositories.in_memory_catalog_store import InMemoryCatalogStore
from infrastructure.repositories.sqlite_catalog_store import SqliteCatalogStore
from infrastructure.settings import ENV_PREFIX, SearchSettings
from infrastructure.storage.in_memory_vector_index import InMemoryVectorIndex

logger = logging.getLogger(__name__)

EmbedderName = Literal["token-hash", "char-ngram", "sentence-transformers", "ollama"]
VectorIndexName = Literal["in_memory", "faiss"]
CatalogStoreName = Literal["in_memory", "sqlite"]


@dataclass(slots=True)
class Container:
    """Collaborators and engine components built once at start-up."""

    settings: SearchSettings
    embedder: Embedder
    vector_index: VectorIndex
    catalog_store: CatalogStore
    classifier: QueryClassifier
    chunker: RecordChunker
    router: CollectionRouter
    fusion: ResultFusion
    strategies: dict[StrategyName, RetrievalStrategy]
    orchestrator: HybridSearchOrchestrator
    reindex_service: ReindexService

    def collection(self, name: str) -> CollectionRef:
        for collection in self.router.collections:
            if collection.name == name:
                return collection
        raise KeyError(f"Unknown collection '{name}'")


@dataclass(slots=True)
class ContainerConfig:
    """Selects concrete collaborators and where they keep their data."""

    embedder: EmbedderName = "char-ngram"
    vector_index: VectorIndexName = "in_memory"
    catalog_store: CatalogStoreName = "in_memory"
    data_dir: str = "data"
    models_dir: str = "models"
    embedding_model: str | None = None
    ollama_url: str = "http://localhost:11434"
    cache_query_embeddings: bool = True
    available_collection: str | None = "in_stock"
    full_collection: str | None = "all_fda"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ContainerConfig":
        env = os.environ if environ is None else environ
        defaults = cls()

        def optional(name: str, default: str | None) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None:
                return default
            return value.strip() or None

        return cls(
            embedder=env.get(ENV_PREFIX + "EMBEDDER", defaults.embedder),  # type: ignore[arg-type]
            vector_index=env.get(ENV_PREFIX + "VECTOR_INDEX", defaults.vector_index),  # type: ignore[arg-type]
            catalog_store=env.get(ENV_PREFIX + "CATALOG_STORE", defaults.catalog_store),  # type: ignore[arg-type]
            data_dir=env.get(ENV_PREFIX + "DATA_DIR", defaults.data_dir),
            models_dir=env.get(ENV_PREFIX + "MODELS_DIR", defaults.models_dir),
            embedding_model=optional("EMBEDDING_MODEL", defaults.embedding_model),
            ollama_url=env.get(ENV_PREFIX + "OLLAMA_URL", defaults.ollama_url),
            cache_query_embeddings=env.get(ENV_PREFIX + "CACHE_QUERY_EMBEDDINGS", "1") not in {"0", "false", "no"},
            available_collection=optional("AVAILABLE_COLLECTION", defaults.available_collection),
            full_collection=optional("FULL_COLLECTION", defaults.full_collection),
        )


def _resolve_model_reference(model_ref: str, cfg: ContainerConfig) -> str:
    """Prefer a model saved under `models_dir` (see scripts/prefetch_models.py)."""

    local_path = Path(cfg.models_dir) / model_ref
    if local_path.is_dir():
        return str(local_path)
    return model_ref


def _sentence_transformers_embedder(cfg: ContainerConfig) -> Embedder:
    from infrastructure.embedding.sentence_transformers_embedder import (  # noqa: PLC0415
        DEFAULT_MULTILINGUAL_MODEL,
        SentenceTransformersConfig,
        SentenceTransformersEmbedder,
    )

    model_ref = _resolve_model_reference(cfg.embedding_model or DEFAULT_MULTILINGUAL_MODEL, cfg)
    return SentenceTransformersEmbedder(SentenceTransformersConfig(model_name=model_ref))


def _ollama_embedder(cfg: ContainerConfig) -> Embedder:
    ollama_cfg = OllamaEmbedderConfig(ollama_url=cfg.ollama_url)
    if cfg.embedding_model:
        ollama_cfg.model = cfg.embedding_model
    return OllamaEmbedder(ollama_cfg)


def _faiss_index(cfg: ContainerConfig, embedder: Embedder) -> VectorIndex:
    from infrastructure.storage.faiss_vector_index import FaissVectorIndex  # noqa: PLC0415

    return FaissVectorIndex(dimension=embedder.dimension, index_root=Path(cfg.data_dir) / "indexes")


_EMBEDDER_FACTORIES: dict[EmbedderName, Callable[[ContainerConfig], Embedder]] = {
    "token-hash": lambda cfg: TokenHashEmbedder(),
    "char-ngram": lambda cfg: CharacterNgramEmbedder(),
    "sentence-transformers": _sentence_transformers_embedder,
    "ollama": _ollama_embedder,
}

_VECTOR_INDEX_FACTORIES: dict[VectorIndexName, Callable[[ContainerConfig, Embedder], VectorIndex]] = {
    "in_memory": lambda cfg, embedder: InMemoryVectorIndex(),
    "faiss": _faiss_index,
}

_CATALOG_STORE_FACTORIES: dict[CatalogStoreName, Callable[[ContainerConfig], CatalogStore]] = {
    "in_memory": lambda cfg: InMemoryCatalogStore(),
    "sqlite": lambda cfg: SqliteCatalogStore(db_path=Path(cfg.data_dir) / "materialsearch.db"),
}


def build_default_container(
    config: ContainerConfig | None = None,
    settings: SearchSettings | None = None,
) -> Container:
    """Instantiate the default infrastructure stack and the engine on top of it."""

    cfg = config or ContainerConfig()
    search_settings = settings or SearchSettings()
    if cfg.vector_index == "faiss" or cfg.catalog_store == "sqlite":
        Path(cfg.data_dir).mkdir(parents=True, exist_ok=True)

    try:
        embedder = _EMBEDDER_FACTORIES[cfg.embedder](cfg)
    except KeyError as exc:  # pragma: no cover - defensive
        raise ValueError(f"Unknown embedder '{cfg.embedder}'") from exc
    if cfg.cache_query_embeddings:
        embedder = CachedEmbedder(embedder)
    try:
        vector_index = _VECTOR_INDEX_FACTORIES[cfg.vector_index](cfg, embedder)
    except KeyError as exc:  # pragma: no cover - defensive
        raise ValueError(f"Unknown vector index '{cfg.vector_index}'") from exc
    try:
        catalog_store = _CATALOG_STORE_FACTORIES[cfg.catalog_store](cfg)
    except KeyError as exc:  # pragma: no cover - defensive
        raise ValueError(f"Unknown catalog store '{cfg.catalog_store}'") from exc

    router_config = replace(
        search_settings.router,
        available_collection=(
            CollectionRef(cfg.available_collection, cfg.available_collection, is_available=True)
            if cfg.available_collection
            else None
        ),
        full_collection=(
            CollectionRef(cfg.full_collection, cfg.full_collection, is_available=False)
            if cfg.full_collection
            else None
        ),
    )

    classifier = QueryClassifier(search_settings.classifier)
    chunker = RecordChunker(search_settings.chunker)
    router = CollectionRouter(router_config)
    fusion = ResultFusion(search_settings.fusion)
    strategy_config = search_settings.strategies
    strategies: dict[StrategyName, RetrievalStrategy] = {
        StrategyName.EXACT: ExactMatchStrategy(catalog_store, strategy_config),
        StrategyName.METADATA: MetadataFilterStrategy(vector_index, strategy_config),
        StrategyName.FUZZY: FuzzyMatchStrategy(catalog_store, strategy_config),
        StrategyName.SEMANTIC: SemanticSearchStrategy(embedder, vector_index, strategy_config),
    }
    orchestrator = HybridSearchOrchestrator(
        classifier=classifier,
        router=router,
        fusion=fusion,
        strategies=strategies,
        config=search_settings.orchestrator,
    )
    reindex_service = ReindexService(chunker=chunker, embedder=embedder, vector_index=vector_index)
    logger.info(
        "Container ready: embedder=%s index=%s store=%s collections=%s",
        embedder.model_id,
        cfg.vector_index,
        cfg.catalog_store,
        [c.name for c in router.collections],
    )

    return Container(
        settings=search_settings,
        embedder=embedder,
        vector_index=vector_index,
        catalog_store=catalog_store,
        classifier=classifier,
        chunker=chunker,
        router=router,
        fusion=fusion,
        strategies=strategies,
        orchestrator=orchestrator,
        reindex_service=reindex_service,
    )


__all__ = ["Container", "ContainerConfig", "build_default_container"]
