from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class RelevanceLabel:
    record_id: str
    grade: int = 1


@dataclass(slots=True)
class TestCase:
    id: str
    query_text: str
    relevance_labels: list[RelevanceLabel] = field(default_factory=list)
    collection_hint: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class TestSuite:
    id: str
    name: str
    description: str = ""
    test_cases: list[TestCase] = field(default_factory=list)


@dataclass(slots=True)
class ExperimentConfig:
    id: str
    name: str
    top_k: int = 10
    settings: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CaseRunResult:
    test_case_id: str
    ranked_record_ids: list[str]
    scores: list[float] = field(default_factory=list)
    status: str = "ok"
    metrics: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class ExperimentRun:
    id: str
    test_suite_id: str
    experiment_config_id: str
    created_at: datetime
    case_results: list[CaseRunResult] = field(default_factory=list)
    aggregate_metrics: dict[str, float] = field(default_factory=dict)
