import unittest

from application.services.result_fusion import FusionConfig, ResultFusion
from domain.entities import CandidateResult, StrategyName


def candidate(record_id: str, strategy: StrategyName, score: float, collection: str = "in_stock") -> CandidateResult:
    return CandidateResult(record_id=record_id, raw_score=score, match_type=strategy, collection=collection)


class TestResultFusion(unittest.TestCase):
    def setUp(self) -> None:
        self.fusion = ResultFusion()

    def test_same_record_from_several_strategies_is_merged(self):
        results = self.fusion.fuse(
            {
                StrategyName.EXACT: [candidate("rec-001", StrategyName.EXACT, 1.0)],
                StrategyName.SEMANTIC: [candidate("rec-001", StrategyName.SEMANTIC, 0.6)],
            }
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].fused_score, 1.0)
        self.assertTrue(results[0].has_exact)
        self.assertEqual(results[0].strategies, {StrategyName.EXACT, StrategyName.SEMANTIC})

    def test_fused_score_is_max_not_sum(self):
        results = self.fusion.fuse(
            {
                StrategyName.FUZZY: [candidate("rec-001", StrategyName.FUZZY, 0.9)],
                StrategyName.SEMANTIC: [candidate("rec-001", StrategyName.SEMANTIC, 0.9)],
            }
        )

        self.assertAlmostEqual(results[0].fused_score, 0.765)
        self.assertEqual(results[0].contributing_matches[0].match_type, StrategyName.FUZZY)

    def test_exact_match_wins_a_score_tie(self):
        results = self.fusion.fuse(
            {
                StrategyName.METADATA: [candidate("rec-a", StrategyName.METADATA, 1.0)],
                StrategyName.EXACT: [candidate("rec-b", StrategyName.EXACT, 0.9)],
            }
        )

        self.assertEqual(results[0].fused_score, results[1].fused_score)
        self.assertEqual([r.record_id for r in results], ["rec-b", "rec-a"])

    def test_more_strategies_wins_a_tie_without_exact(self):
        results = self.fusion.fuse(
            {
                StrategyName.FUZZY: [
                    candidate("rec-a", StrategyName.FUZZY, 1.0),
                    candidate("rec-b", StrategyName.FUZZY, 1.0),
                ],
                StrategyName.SEMANTIC: [candidate("rec-b", StrategyName.SEMANTIC, 0.5)],
            }
        )

        self.assertEqual([r.record_id for r in results], ["rec-b", "rec-a"])

    def test_record_id_breaks_remaining_ties(self):
        results = self.fusion.fuse(
            {StrategyName.SEMANTIC: [candidate("rec-z", StrategyName.SEMANTIC, 0.8), candidate("rec-y", StrategyName.SEMANTIC, 0.8)]}
        )

        self.assertEqual([r.record_id for r in results], ["rec-y", "rec-z"])

    def test_exact_beats_every_other_strategy_at_full_score(self):
        results = self.fusion.fuse(
            {
                StrategyName.EXACT: [candidate("rec-exact", StrategyName.EXACT, 0.9)],
                StrategyName.FUZZY: [candidate("rec-fuzzy", StrategyName.FUZZY, 1.0)],
                StrategyName.SEMANTIC: [candidate("rec-semantic", StrategyName.SEMANTIC, 1.0)],
            }
        )

        self.assertEqual(results[0].record_id, "rec-exact")

    def test_raw_scores_are_clamped(self):
        self.assertEqual(self.fusion.boost(candidate("x", StrategyName.SEMANTIC, 1.7)), 0.75)
        self.assertEqual(self.fusion.boost(candidate("x", StrategyName.SEMANTIC, -0.2)), 0.0)

    def test_max_results_truncates(self):
        candidates = [candidate(f"rec-{i}", StrategyName.SEMANTIC, i / 10) for i in range(1, 8)]

        results = self.fusion.fuse({StrategyName.SEMANTIC: candidates}, max_results=3)

        self.assertEqual([r.record_id for r in results], ["rec-7", "rec-6", "rec-5"])

    def test_no_candidates(self):
        self.assertEqual(self.fusion.fuse({}), [])


class TestFusionConfig(unittest.TestCase):
    def test_rejects_weight_outside_range(self):
        weights = {name: 1.0 for name in StrategyName}
        weights[StrategyName.FUZZY] = 1.5
        with self.assertRaises(ValueError):
            FusionConfig(strategy_weights=weights)

    def test_rejects_missing_weight(self):
        with self.assertRaises(ValueError):
            FusionConfig(strategy_weights={StrategyName.EXACT: 1.0})


if __name__ == "__main__":
    unittest.main()
