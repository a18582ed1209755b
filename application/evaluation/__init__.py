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
from application.evaluation.models import (
    CaseRunResult,
    ExperimentConfig,
    ExperimentRun,
    RelevanceLabel,
    TestCase,
    TestSuite,
)
from application.evaluation.runner import run_experiment_suite
from application.evaluation.service import (
    create_experiment_config,
    create_test_case,
    create_test_suite,
    run_orchestrator_experiment,
)

__all__ = [
    "RelevanceLabel",
    "TestCase",
    "TestSuite",
    "ExperimentConfig",
    "CaseRunResult",
    "ExperimentRun",
    "precision_at_k",
    "recall_at_k",
    "hit_at_k",
    "mrr_at_k",
    "ndcg_at_k",
    "ready_now_at_k",
    "exact_at_1",
    "aggregate_mean",
    "run_experiment_suite",
    "create_test_suite",
    "create_test_case",
    "create_experiment_config",
    "run_orchestrator_experiment",
]
