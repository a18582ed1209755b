from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from application.evaluation.metrics import (
    aggregate_mean,
    exact_at_1,
    hit_at_k,
    mrr_at_k,
    ndcg_at_k,
    precision_at_k,
    ready_now_at_k,
    recall_at_k,
)
from application.evaluation.models import CaseRunResult, ExperimentConfig, ExperimentRun, TestCase, TestSuite
from domain.entities import SearchOutcome, SearchResult

SearchCallable = Callable[[TestCase, int], SearchOutcome]


def case_metrics(results: list[SearchResult], case: TestCase, k: int) -> dict[str, float]:
    ranked_ids = [result.record_id for result in results]
    relevant = {label.record_id for label in case.relevance_labels if label.grade > 0}
    gains = {label.record_id: int(label.grade) for label in case.relevance_labels}
    return {
        f"precision@{k}": precision_at_k(ranked_ids, relevant, k),
        f"recall@{k}": recall_at_k(ranked_ids, relevant, k),
        f"hit@{k}": hit_at_k(ranked_ids, relevant, k),
        f"mrr@{k}": mrr_at_k(ranked_ids, relevant, k),
        f"ndcg@{k}": ndcg_at_k(ranked_ids, gains, k),
        f"ready_now@{k}": ready_now_at_k(results, k),
        "exact@1": exact_at_1(results),
    }


def run_experiment_suite(
    suite: TestSuite,
    config: ExperimentConfig,
    search_fn: SearchCallable,
) -> ExperimentRun:
    """Run every case of a suite through `search_fn` and score the rankings.

    Cases whose search was unavailable still count, with empty rankings, so a
    flaky collaborator shows up as lower metrics rather than a skipped case.
    """
    case_results: list[CaseRunResult] = []

    for case in suite.test_cases:
        outcome = search_fn(case, config.top_k)
        ranked_ids = [result.record_id for result in outcome.results]
        case_results.append(
            CaseRunResult(
                test_case_id=case.id,
                ranked_record_ids=ranked_ids,
                scores=[result.fused_score for result in outcome.results],
                status=outcome.status,
                metrics=case_metrics(outcome.results, case, config.top_k),
            )
        )

    return ExperimentRun(
        id=str(uuid4()),
        test_suite_id=suite.id,
        experiment_config_id=config.id,
        created_at=datetime.now(timezone.utc),
        case_results=case_results,
        aggregate_metrics=aggregate_mean([x.metrics for x in case_results]),
    )
