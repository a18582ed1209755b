"""Hybrid search: classify, route, fan strategies out concurrently, fuse."""
from __future__ import annotations

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Mapping

from application.services.collection_router import CollectionRouter
from application.services.query_classifier import QueryClassifier
from application.services.result_fusion import ResultFusion
from domain.entities import (
    CandidateResult,
    CollectionHint,
    CollectionRef,
    QueryClassification,
    SearchOutcome,
    StrategyFailure,
    StrategyName,
)
from domain.errors import AllStrategiesFailed, StrategyTimeout
from domain.interfaces import RetrievalStrategy

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrchestratorConfig:
    strategy_timeout_seconds: float = 2.0
    overall_deadline_seconds: float = 5.0
    default_top_k: int = 10
    max_workers: int = 16

    def __post_init__(self) -> None:
        if self.strategy_timeout_seconds <= 0 or self.overall_deadline_seconds <= 0:
            raise ValueError("Timeouts must be positive.")
        if self.default_top_k <= 0:
            raise ValueError("default_top_k must be positive.")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive.")


class HybridSearchOrchestrator:
    """Top-level entry point of the retrieval engine.

    Every (strategy, collection) pair runs as its own task on the
    orchestrator's thread pool. Tasks settle independently: failures and
    timeouts are logged and left out of fusion, and only a total failure is
    reported, on `SearchOutcome.error`. A timed-out thread keeps running in
    the pool but nothing waits for it.
    """

    def __init__(
        self,
        *,
        classifier: QueryClassifier,
        router: CollectionRouter,
        fusion: ResultFusion,
        strategies: Mapping[StrategyName, RetrievalStrategy],
        config: OrchestratorConfig | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._classifier = classifier
        self._router = router
        self._fusion = fusion
        self._strategies = dict(strategies)
        self._config = config or OrchestratorConfig()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="materialsearch-strategy",
        )

    @property
    def classifier(self) -> QueryClassifier:
        return self._classifier

    @property
    def router(self) -> CollectionRouter:
        return self._router

    def search(
        self,
        query: str,
        top_k: int | None = None,
        collection_hint: CollectionHint | None = None,
    ) -> SearchOutcome:
        """Blocking wrapper around `search_async` for callers without an event loop.

        Returns within the overall deadline even when a collaborator hangs,
        since strategy threads belong to the orchestrator's pool and not to
        the short-lived loop.
        """

        return asyncio.run(self.search_async(query, top_k=top_k, collection_hint=collection_hint))

    def close(self) -> None:
        """Stop accepting work; threads still running are not waited for."""

        self._executor.shutdown(wait=False, cancel_futures=True)

    async def search_async(
        self,
        query: str,
        top_k: int | None = None,
        collection_hint: CollectionHint | None = None,
    ) -> SearchOutcome:
        started = time.perf_counter()
        limit = self._config.default_top_k if top_k is None else top_k
        if not query or not query.strip() or limit <= 0:
            return SearchOutcome(query=query or "")

        classification = self._classifier.classify(query)
        decision = self._router.route(classification, collection_hint)

        tasks: dict[asyncio.Task, tuple[StrategyName, CollectionRef]] = {}
        for collection in decision.collections:
            for name in classification.recommended_strategies:
                strategy = self._strategies.get(name)
                if strategy is None:
                    logger.debug("Strategy %s is not configured, skipping", name.value)
                    continue
                task = asyncio.create_task(self._run(strategy, classification, collection))
                tasks[task] = (name, collection)

        candidates, failures = await self._settle(tasks)

        outcome = SearchOutcome(query=query, classification=classification, routing=decision, failures=failures)
        if len(failures) == len(tasks):
            outcome.error = AllStrategiesFailed(failures)
            logger.error("Search %r unavailable: %s", query, outcome.error)
        else:
            total_candidates = sum(len(items) for items in candidates.values())
            fused = self._fusion.fuse(candidates, max_results=total_candidates)
            outcome.results = self._router.prioritize(fused, decision)[:limit]

        outcome.latency_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "Search %r: %d results, %d/%d tasks failed, %.1f ms",
            query,
            len(outcome.results),
            len(failures),
            len(tasks),
            outcome.latency_ms,
        )
        return outcome

    async def _run(
        self,
        strategy: RetrievalStrategy,
        classification: QueryClassification,
        collection: CollectionRef,
    ) -> list[CandidateResult]:
        timeout = self._config.strategy_timeout_seconds
        call = functools.partial(strategy.search, classification.expanded_queries, classification, collection)
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(loop.run_in_executor(self._executor, call), timeout)
        except asyncio.TimeoutError as exc:
            raise StrategyTimeout(strategy.name.value, collection.name, timeout) from exc

    async def _settle(
        self,
        tasks: dict[asyncio.Task, tuple[StrategyName, CollectionRef]],
    ) -> tuple[dict[StrategyName, list[CandidateResult]], list[StrategyFailure]]:
        candidates: dict[StrategyName, list[CandidateResult]] = {}
        failures: list[StrategyFailure] = []
        if not tasks:
            return candidates, failures

        _, pending = await asyncio.wait(tasks, timeout=self._config.overall_deadline_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task, (name, collection) in tasks.items():
            if task in pending:
                logger.warning("%s on %s missed the overall deadline", name.value, collection.name)
                failures.append(StrategyFailure(name, collection.name, "overall deadline exceeded", timed_out=True))
                continue
            exc = task.exception()
            if exc is not None:
                logger.warning("%s on %s failed: %s", name.value, collection.name, exc)
                failures.append(
                    StrategyFailure(name, collection.name, str(exc), timed_out=isinstance(exc, StrategyTimeout))
                )
                continue
            candidates.setdefault(name, []).extend(task.result())
        return candidates, failures


__all__ = ["HybridSearchOrchestrator", "OrchestratorConfig"]
