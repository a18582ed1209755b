import unittest

from application.services.collection_router import CollectionRouter, RouterConfig, collection_stats
from application.services.query_classifier import QueryClassifier
from domain.entities import (
    Availability,
    CollectionHint,
    ContributingMatch,
    RoutingMode,
    SearchResult,
    StrategyName,
)
from tests.fakes import ALL_FDA, IN_STOCK


def result(record_id: str, score: float, *collections: str) -> SearchResult:
    matches = [ContributingMatch(StrategyName.SEMANTIC, score, score, collection=c) for c in collections]
    return SearchResult(record_id=record_id, fused_score=score, contributing_matches=matches, source_collection=collections[0])


class TestRouting(unittest.TestCase):
    def setUp(self) -> None:
        self.router = CollectionRouter()
        self.classifier = QueryClassifier()

    def route(self, query: str, hint: CollectionHint | None = None):
        return self.router.route(self.classifier.classify(query), hint)

    def test_stock_keywords_restrict_to_available_collection(self):
        for query in (
            "hyaluronic acid in stock",
            "Hyaluronic มีในสต็อกไหม",
            "สารให้ความชุ่มชื้นที่มีในสต็อก",
            "what do we have available now",
        ):
            with self.subTest(query=query):
                decision = self.route(query)
                self.assertEqual(decision.mode, RoutingMode.SINGLE_RESTRICTED)
                self.assertEqual(decision.collections, (IN_STOCK,))

    def test_full_catalog_keywords_use_full_collection(self):
        decision = self.route("all fda registered moisturizers")

        self.assertEqual(decision.mode, RoutingMode.SINGLE_FULL)
        self.assertEqual(decision.collections, (ALL_FDA,))
        self.assertIn("fda", decision.matched_keywords)

    def test_no_signal_searches_both(self):
        decision = self.route("vitamin c derivative")

        self.assertEqual(decision.mode, RoutingMode.MERGED_PRIORITIZED)
        self.assertEqual(decision.collections, (IN_STOCK, ALL_FDA))

    def test_conflicting_signals_search_both(self):
        decision = self.route("fda registered ingredients in stock")

        self.assertEqual(decision.mode, RoutingMode.MERGED_PRIORITIZED)

    def test_hint_overrides_keywords(self):
        decision = self.route("hyaluronic acid in stock", CollectionHint.FULL)

        self.assertEqual(decision.mode, RoutingMode.SINGLE_FULL)
        self.assertEqual(self.route("anything", CollectionHint.BOTH).mode, RoutingMode.MERGED_PRIORITIZED)

    def test_single_configured_collection(self):
        router = CollectionRouter(RouterConfig(full_collection=None))

        decision = router.route(self.classifier.classify("all fda ingredients"))

        self.assertEqual(decision.mode, RoutingMode.SINGLE_RESTRICTED)
        self.assertEqual(decision.collections, (IN_STOCK,))

    def test_config_requires_a_collection(self):
        with self.assertRaises(ValueError):
            RouterConfig(available_collection=None, full_collection=None)

    def test_route_rejects_config_emptied_after_construction(self):
        config = RouterConfig(full_collection=None)
        router = CollectionRouter(config)
        config.available_collection = None

        with self.assertRaises(ValueError):
            router.route(self.classifier.classify("niacinamide"))


class TestPrioritize(unittest.TestCase):
    def setUp(self) -> None:
        self.router = CollectionRouter()
        self.merged = self.router.route(QueryClassifier().classify("vitamin"))

    def test_available_results_get_bonus_in_merged_mode(self):
        ranked = self.router.prioritize(
            [result("orderable", 0.8, "all_fda"), result("ready", 0.78, "in_stock")],
            self.merged,
        )

        self.assertEqual([r.record_id for r in ranked], ["ready", "orderable"])
        self.assertAlmostEqual(ranked[0].fused_score, 0.83)
        self.assertEqual(ranked[0].availability, Availability.READY_NOW)
        self.assertEqual(ranked[1].availability, Availability.ORDERABLE)

    def test_bonus_does_not_exceed_one(self):
        ranked = self.router.prioritize([result("ready", 0.99, "all_fda", "in_stock")], self.merged)

        self.assertEqual(ranked[0].fused_score, 1.0)
        self.assertEqual(ranked[0].source_collection, "in_stock")

    def test_no_bonus_for_single_collection_routes(self):
        restricted = self.router.route(QueryClassifier().classify("in stock vitamin"))

        ranked = self.router.prioritize([result("ready", 0.7, "in_stock")], restricted)

        self.assertEqual(ranked[0].fused_score, 0.7)
        self.assertEqual(ranked[0].availability, Availability.READY_NOW)

    def test_collection_stats(self):
        ranked = self.router.prioritize(
            [result("a", 0.5, "in_stock"), result("b", 0.5, "all_fda"), result("c", 0.4, "all_fda")],
            self.merged,
        )

        stats = collection_stats(ranked)

        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["ready_now"], 1)
        self.assertEqual(stats["orderable"], 2)
        self.assertEqual(stats["ready_now_pct"], 33.3)


if __name__ == "__main__":
    unittest.main()
