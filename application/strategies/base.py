"""Shared configuration and collaborator-call retry for retrieval strategies."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from domain.errors import CollaboratorUnavailable
from domain.interfaces import RetrievalStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class StrategyConfig:
    semantic_top_k: int = 10
    metadata_top_k: int = 50
    fuzzy_threshold: float = 0.6
    fuzzy_max_results: int = 10
    fuzzy_page_size: int = 500
    exact_equal_score: float = 1.0
    exact_substring_score: float = 0.9
    metadata_score: float = 0.9
    retry_attempts: int = 1
    retry_backoff_seconds: float = 0.1

    def __post_init__(self) -> None:
        if not 0.0 < self.fuzzy_threshold <= 1.0:
            raise ValueError("fuzzy_threshold must be within (0, 1].")
        if self.semantic_top_k <= 0 or self.metadata_top_k <= 0 or self.fuzzy_max_results <= 0:
            raise ValueError("top-k limits must be positive.")
        if self.retry_attempts < 0 or self.retry_backoff_seconds < 0:
            raise ValueError("retry settings must be non-negative.")


class BaseStrategy(RetrievalStrategy):
    """Adds retry-once-with-backoff around collaborator calls."""

    def __init__(self, config: StrategyConfig | None = None) -> None:
        self._config = config or StrategyConfig()

    def _call(self, collaborator: str, fn: Callable[..., T], *args, **kwargs) -> T:
        attempts = self._config.retry_attempts
        for attempt in range(attempts + 1):
            try:
                return fn(*args, **kwargs)
            except (CollaboratorUnavailable, ConnectionError, TimeoutError) as exc:
                if attempt >= attempts:
                    if isinstance(exc, CollaboratorUnavailable):
                        raise
                    raise CollaboratorUnavailable(collaborator, str(exc)) from exc
                delay = self._config.retry_backoff_seconds * (2**attempt)
                logger.warning(
                    "%s strategy: %s call failed (%s), retrying in %.2fs",
                    self.name.value,
                    collaborator,
                    exc,
                    delay,
                )
                time.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["BaseStrategy", "StrategyConfig"]
