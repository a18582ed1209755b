import time
import unittest

from application.services.collection_router import CollectionRouter
from application.services.query_classifier import QueryClassifier
from application.services.result_fusion import ResultFusion
from application.strategies.exact_match import ExactMatchStrategy
from application.strategies.fuzzy_match import FuzzyMatchStrategy
from application.strategies.metadata_filter import MetadataFilterStrategy
from application.strategies.semantic_search import SemanticSearchStrategy
from application.use_cases.check_availability import check_availability
from application.use_cases.search import HybridSearchOrchestrator, OrchestratorConfig
from domain.entities import Availability, CatalogRecord, CollectionHint, RoutingMode, StrategyName
from domain.errors import AllStrategiesFailed
from infrastructure.repositories.in_memory_catalog_store import InMemoryCatalogStore
from tests.fakes import (
    FailingStrategy,
    FlakyCatalogStore,
    SlowStrategy,
    StaticStrategy,
    UnavailableEmbedder,
    UnavailableVectorIndex,
    build_engine,
    fast_settings,
)


def orchestrator_with(strategies, config: OrchestratorConfig | None = None) -> HybridSearchOrchestrator:
    return HybridSearchOrchestrator(
        classifier=QueryClassifier(),
        router=CollectionRouter(),
        fusion=ResultFusion(),
        strategies={strategy.name: strategy for strategy in strategies},
        config=config,
    )


class TestHybridSearch(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.container = build_engine()
        self.orchestrator = self.container.orchestrator

    async def test_exact_code_ranks_first(self):
        outcome = await self.orchestrator.search_async("RM000123")

        self.assertTrue(outcome.ok)
        top = outcome.results[0]
        self.assertEqual(top.record_id, "rec-001")
        self.assertEqual(top.fused_score, 1.0)
        self.assertTrue(top.has_exact)
        self.assertEqual(top.availability, Availability.READY_NOW)
        self.assertEqual(top.source_collection, "in_stock")
        self.assertEqual(outcome.routing.mode, RoutingMode.MERGED_PRIORITIZED)

    async def test_short_fragments_get_no_exact_matches(self):
        for query in ("rm", "000"):
            with self.subTest(query=query):
                outcome = await self.orchestrator.search_async(query)

                self.assertFalse(any(result.has_exact for result in outcome.results))

    async def test_misspelled_name_finds_record(self):
        outcome = await self.orchestrator.search_async("Hyaluronc Acid")

        self.assertEqual(outcome.results[0].record_id, "rec-001")
        self.assertIn(StrategyName.FUZZY, outcome.results[0].strategies)

    async def test_results_are_unique_per_record(self):
        outcome = await self.orchestrator.search_async("soothing antioxidant ingredients", top_k=10)

        ids = [r.record_id for r in outcome.results]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertLessEqual(len(ids), 10)

    async def test_stock_query_only_returns_available_records(self):
        outcome = await self.orchestrator.search_async("green tea extract in stock")

        self.assertEqual(outcome.routing.mode, RoutingMode.SINGLE_RESTRICTED)
        self.assertNotIn("rec-003", [r.record_id for r in outcome.results])
        self.assertTrue(all(r.availability is Availability.READY_NOW for r in outcome.results))

    async def test_full_catalog_hint_marks_results_orderable(self):
        outcome = await self.orchestrator.search_async("RC00A0123", collection_hint=CollectionHint.FULL)

        self.assertEqual(outcome.results[0].record_id, "rec-003")
        self.assertEqual(outcome.results[0].availability, Availability.ORDERABLE)

    async def test_added_record_is_searchable_by_code(self):
        record = CatalogRecord(id="rec-new", canonical_code="RM999001", display_name="Ceramide NP")
        collection = self.container.collection("in_stock")
        self.container.catalog_store.add(record, collection=collection.name)
        self.container.reindex_service.reindex(record, collection)

        outcome = await self.orchestrator.search_async("RM999001", top_k=1)

        self.assertEqual([r.record_id for r in outcome.results], ["rec-new"])
        self.assertIn(StrategyName.EXACT, outcome.results[0].strategies)

    async def test_blank_query_returns_empty_outcome(self):
        for query in ("", "   "):
            outcome = await self.orchestrator.search_async(query)
            self.assertEqual(outcome.results, [])
            self.assertIsNone(outcome.error)
            self.assertEqual(outcome.status, "no_results")

    async def test_top_k_is_respected(self):
        outcome = await self.orchestrator.search_async("xyzzy blorp", top_k=2)

        self.assertLessEqual(len(outcome.results), 2)


class TestFailureIsolation(unittest.IsolatedAsyncioTestCase):
    async def test_every_strategy_failing_reports_unavailable(self):
        orchestrator = orchestrator_with([FailingStrategy(name) for name in StrategyName])

        outcome = await orchestrator.search_async("RM000123")

        self.assertIsInstance(outcome.error, AllStrategiesFailed)
        self.assertEqual(outcome.status, "unavailable")
        self.assertEqual(outcome.results, [])
        self.assertEqual(len(outcome.failures), 4)

    async def test_partial_failure_still_returns_results(self):
        exact = StaticStrategy(StrategyName.EXACT, {"rec-001": 1.0})
        orchestrator = orchestrator_with([exact, FailingStrategy(StrategyName.METADATA)])

        outcome = await orchestrator.search_async("RM000123")

        self.assertIsNone(outcome.error)
        self.assertEqual([r.record_id for r in outcome.results], ["rec-001"])
        self.assertEqual({f.strategy for f in outcome.failures}, {StrategyName.METADATA})
        self.assertCountEqual(exact.calls, ["in_stock", "all_fda"])

    async def test_slow_strategy_times_out_without_blocking_others(self):
        orchestrator = orchestrator_with(
            [StaticStrategy(StrategyName.EXACT, {"rec-001": 1.0}), SlowStrategy(StrategyName.METADATA, 0.5)],
            OrchestratorConfig(strategy_timeout_seconds=0.1, overall_deadline_seconds=2.0),
        )

        outcome = await orchestrator.search_async("RM000123")

        self.assertEqual([r.record_id for r in outcome.results], ["rec-001"])
        self.assertTrue(outcome.failures)
        self.assertTrue(all(f.timed_out for f in outcome.failures))

    async def test_overall_deadline_cancels_stragglers(self):
        orchestrator = orchestrator_with(
            [StaticStrategy(StrategyName.EXACT, {"rec-001": 1.0}), SlowStrategy(StrategyName.METADATA, 0.4)],
            OrchestratorConfig(strategy_timeout_seconds=1.0, overall_deadline_seconds=0.1),
        )

        outcome = await orchestrator.search_async("RM000123")

        self.assertEqual([r.record_id for r in outcome.results], ["rec-001"])
        self.assertEqual({f.reason for f in outcome.failures}, {"overall deadline exceeded"})

    async def test_no_configured_strategy_is_unavailable(self):
        outcome = await orchestrator_with([]).search_async("RM000123")

        self.assertTrue(outcome.unavailable)


class TestCatalogScenarios(unittest.IsolatedAsyncioTestCase):
    async def test_typo_in_name_is_recovered_by_fuzzy_match(self):
        container = build_engine()
        record = CatalogRecord(id="r-ginger", canonical_code="RM000777", display_name="Ginger Extract")
        collection = container.collection("all_fda")
        container.catalog_store.add(record, collection=collection.name)
        container.reindex_service.reindex(record, collection)

        outcome = await container.orchestrator.search_async("Giner Extract")

        ginger = next(r for r in outcome.results if r.record_id == "r-ginger")
        fuzzy = next(m for m in ginger.contributing_matches if m.match_type is StrategyName.FUZZY)
        self.assertGreaterEqual(fuzzy.raw_score, 0.6)
        self.assertEqual(ginger.availability, Availability.ORDERABLE)

    async def test_every_collaborator_down_is_unavailable_not_empty(self):
        settings = fast_settings()
        store = FlakyCatalogStore(InMemoryCatalogStore(), failures=1000)
        index = UnavailableVectorIndex()
        embedder = UnavailableEmbedder()
        config = settings.strategies
        orchestrator = orchestrator_with(
            [
                ExactMatchStrategy(store, config),
                MetadataFilterStrategy(index, config),
                FuzzyMatchStrategy(store, config),
                SemanticSearchStrategy(embedder, index, config),
            ]
        )

        for query in ("RM000001", "moisturizing ingredients", "Giner Extract"):
            with self.subTest(query=query):
                outcome = await orchestrator.search_async(query)
                self.assertIsInstance(outcome.error, AllStrategiesFailed)
                self.assertEqual(outcome.results, [])
                self.assertTrue(outcome.failures)


class TestBlockingEntryPoints(unittest.TestCase):
    def test_search_without_event_loop(self):
        outcome = build_engine().orchestrator.search("RM000456")

        self.assertEqual(outcome.results[0].record_id, "rec-002")

    def test_blocking_search_returns_within_deadline_when_collaborator_hangs(self):
        orchestrator = orchestrator_with(
            [StaticStrategy(StrategyName.EXACT, {"rec-001": 1.0}), SlowStrategy(StrategyName.METADATA, 3.0)],
            OrchestratorConfig(strategy_timeout_seconds=0.1, overall_deadline_seconds=0.3),
        )
        self.addCleanup(orchestrator.close)

        started = time.perf_counter()
        outcome = orchestrator.search("RM000123")
        elapsed = time.perf_counter() - started

        self.assertLess(elapsed, 1.0)
        self.assertEqual([r.record_id for r in outcome.results], ["rec-001"])
        self.assertTrue(all(f.timed_out for f in outcome.failures))
        self.assertLess(outcome.latency_ms, 1000)

    def test_closed_orchestrator_rejects_work(self):
        orchestrator = orchestrator_with([StaticStrategy(StrategyName.EXACT, {"rec-001": 1.0})])
        orchestrator.close()

        outcome = orchestrator.search("RM000123")

        self.assertIsInstance(outcome.error, AllStrategiesFailed)

    def test_check_availability_in_stock(self):
        report = check_availability(build_engine().orchestrator, "RM000123")

        self.assertTrue(report.in_stock)
        self.assertEqual(report.details.record_id, "rec-001")

    def test_check_availability_offers_alternatives(self):
        report = check_availability(build_engine().orchestrator, "RC00A0123")

        self.assertFalse(report.in_stock)
        self.assertFalse(report.unavailable)
        self.assertIn("rec-003", [r.record_id for r in report.alternatives])


if __name__ == "__main__":
    unittest.main()
