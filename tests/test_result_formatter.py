import unittest

from application.services.result_formatter import MESSAGES, format_results
from domain.entities import (
    Availability,
    ContributingMatch,
    RoutingDecision,
    RoutingMode,
    SearchOutcome,
    SearchResult,
    StrategyFailure,
    StrategyName,
)
from domain.errors import AllStrategiesFailed
from tests.fakes import IN_STOCK, sample_records


class TestFormatResults(unittest.TestCase):
    def test_unavailable(self):
        failure = StrategyFailure(StrategyName.EXACT, "in_stock", "down")
        outcome = SearchOutcome(query="RM000123", failures=[failure], error=AllStrategiesFailed([failure]))

        self.assertEqual(format_results(outcome), MESSAGES["unavailable"])

    def test_no_results_in_stock_suggests_full_catalog(self):
        routing = RoutingDecision(RoutingMode.SINGLE_RESTRICTED, (IN_STOCK,))

        self.assertEqual(format_results(SearchOutcome(query="x", routing=routing)), MESSAGES["no_results_in_stock"])
        self.assertEqual(format_results(SearchOutcome(query="x")), MESSAGES["no_results"])

    def test_results_are_listed_with_availability(self):
        result = SearchResult(
            record_id="rec-001",
            fused_score=1.0,
            contributing_matches=[ContributingMatch(StrategyName.EXACT, 1.0, 1.0, collection="in_stock")],
            source_collection="in_stock",
            availability=Availability.READY_NOW,
            record=sample_records()[0],
        )

        text = format_results(SearchOutcome(query="RM000123", results=[result]))

        self.assertIn("พบ 1 รายการ", text)
        self.assertIn("**RM000123** Hyaluronic Acid", text)
        self.assertIn("INCI: Sodium Hyaluronate", text)
        self.assertIn(MESSAGES["ready_now"], text)


if __name__ == "__main__":
    unittest.main()
