"""Tuning settings for the retrieval engine, with environment overrides."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from application.services.collection_router import RouterConfig
from application.services.query_classifier import ClassifierConfig
from application.services.record_chunker import ChunkerConfig
from application.services.result_fusion import FusionConfig
from application.strategies.base import StrategyConfig
from application.use_cases.search import OrchestratorConfig
from domain.entities import StrategyName

ENV_PREFIX = "MATERIALSEARCH_"


def _languages(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


# (variable suffix, settings section, field, parser)
_ENV_FIELDS: tuple[tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("MAX_EXPANDED_QUERIES", "classifier", "max_expanded_queries", int),
    ("LOW_CONFIDENCE_THRESHOLD", "classifier", "low_confidence_threshold", float),
    ("CHUNK_SIZE", "chunker", "max_chunk_size", int),
    ("CHUNK_OVERLAP", "chunker", "chunk_overlap", int),
    ("LANGUAGES", "chunker", "languages", _languages),
    ("SEMANTIC_TOP_K", "strategies", "semantic_top_k", int),
    ("METADATA_TOP_K", "strategies", "metadata_top_k", int),
    ("FUZZY_THRESHOLD", "strategies", "fuzzy_threshold", float),
    ("FUZZY_MAX_RESULTS", "strategies", "fuzzy_max_results", int),
    ("RETRY_ATTEMPTS", "strategies", "retry_attempts", int),
    ("RETRY_BACKOFF", "strategies", "retry_backoff_seconds", float),
    ("MAX_RESULTS", "fusion", "max_results", int),
    ("AVAILABLE_BONUS", "router", "available_bonus", float),
    ("STRATEGY_TIMEOUT", "orchestrator", "strategy_timeout_seconds", float),
    ("SEARCH_DEADLINE", "orchestrator", "overall_deadline_seconds", float),
    ("TOP_K", "orchestrator", "default_top_k", int),
    ("SEARCH_WORKERS", "orchestrator", "max_workers", int),
)

_SECTIONS = ("classifier", "chunker", "strategies", "fusion", "router", "orchestrator")

_WEIGHT_ENV = {
    "WEIGHT_EXACT": StrategyName.EXACT,
    "WEIGHT_METADATA": StrategyName.METADATA,
    "WEIGHT_FUZZY": StrategyName.FUZZY,
    "WEIGHT_SEMANTIC": StrategyName.SEMANTIC,
}


@dataclass(slots=True)
class SearchSettings:
    """All empirically chosen constants of the engine in one place."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    chunker: ChunkerConfig = field(default_factory=ChunkerConfig)
    strategies: StrategyConfig = field(default_factory=StrategyConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        # An exact hit must never be outranked by a non-exact hit, even one that
        # picked up the availability bonus.
        weights = self.fusion.strategy_weights
        lowest_exact = weights[StrategyName.EXACT] * min(
            self.strategies.exact_equal_score, self.strategies.exact_substring_score
        )
        highest_other = max(
            weights[StrategyName.METADATA] * self.strategies.metadata_score,
            weights[StrategyName.FUZZY],
            weights[StrategyName.SEMANTIC],
        )
        if lowest_exact + 1e-9 < highest_other + self.router.available_bonus:
            raise ValueError(
                "Exact matches could be outranked: lowest exact score "
                f"{lowest_exact:.3f} < best other score {highest_other:.3f} + availability bonus "
                f"{self.router.available_bonus:.3f}."
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SearchSettings":
        env = os.environ if environ is None else environ
        overrides: dict[str, dict[str, Any]] = {}
        for suffix, section, field_name, parser in _ENV_FIELDS:
            raw = env.get(ENV_PREFIX + suffix)
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides.setdefault(section, {})[field_name] = parser(raw.strip())
            except ValueError as exc:
                raise ValueError(f"Invalid value for {ENV_PREFIX + suffix}: {raw!r}") from exc

        weights = dict(FusionConfig().strategy_weights)
        for suffix, strategy in _WEIGHT_ENV.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw:
                try:
                    weights[strategy] = float(raw)
                except ValueError as exc:
                    raise ValueError(f"Invalid value for {ENV_PREFIX + suffix}: {raw!r}") from exc
        overrides.setdefault("fusion", {})["strategy_weights"] = weights

        defaults = cls()
        sections = {
            name: replace(getattr(defaults, name), **values) for name, values in overrides.items()
        }
        return cls(**{name: sections.get(name, getattr(defaults, name)) for name in _SECTIONS})


__all__ = ["ENV_PREFIX", "SearchSettings"]
