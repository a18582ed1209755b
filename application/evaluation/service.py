from __future__ import annotations

from uuid import uuid4

from application.evaluation.models import (
    CaseRunResult,
    ExperimentConfig,
    ExperimentRun,
    RelevanceLabel,
    TestCase,
    TestSuite,
)
from application.evaluation.runner import run_experiment_suite
from application.use_cases.search import HybridSearchOrchestrator
from domain.entities import CollectionHint, SearchOutcome


def create_test_suite(name: str, description: str = "") -> TestSuite:
    return TestSuite(id=str(uuid4()), name=name, description=description)


def create_test_case(
    query_text: str,
    relevant_record_ids: list[str],
    *,
    collection_hint: str | None = None,
    metadata: dict[str, str] | None = None,
    graded_relevance: dict[str, int] | None = None,
) -> TestCase:
    labels = [
        RelevanceLabel(record_id=record_id, grade=(graded_relevance or {}).get(record_id, 1))
        for record_id in relevant_record_ids
    ]
    return TestCase(
        id=str(uuid4()),
        query_text=query_text,
        relevance_labels=labels,
        collection_hint=collection_hint,
        metadata=metadata or {},
    )


def create_experiment_config(name: str, *, top_k: int = 10, settings: dict[str, str] | None = None) -> ExperimentConfig:
    return ExperimentConfig(id=str(uuid4()), name=name, top_k=top_k, settings=settings or {})


def run_orchestrator_experiment(
    *,
    suite: TestSuite,
    config: ExperimentConfig,
    orchestrator: HybridSearchOrchestrator,
) -> ExperimentRun:
    def _search_fn(case: TestCase, top_k: int) -> SearchOutcome:
        hint = CollectionHint(case.collection_hint) if case.collection_hint else None
        return orchestrator.search(case.query_text, top_k=top_k, collection_hint=hint)

    return run_experiment_suite(suite, config, _search_fn)


__all__ = [
    "create_test_suite",
    "create_test_case",
    "create_experiment_config",
    "run_orchestrator_experiment",
    "CaseRunResult",
    "ExperimentConfig",
    "ExperimentRun",
    "RelevanceLabel",
    "TestCase",
    "TestSuite",
]
