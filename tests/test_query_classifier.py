import unittest

from application.services.query_classifier import (
    ClassifierConfig,
    QueryClassifier,
    detect_language,
    extract_codes,
    extract_property_tags,
)
from domain.entities import QueryIntent, StrategyName


class TestCodeQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = QueryClassifier()

    def test_rm_code_is_exact_code_intent(self):
        result = self.classifier.classify("RM000123")

        self.assertEqual(result.intent, QueryIntent.EXACT_CODE)
        self.assertGreaterEqual(result.confidence, 0.9)
        self.assertEqual(result.extracted_entities.codes, ("RM000123",))
        self.assertEqual(result.recommended_strategies, (StrategyName.EXACT, StrategyName.METADATA))
        self.assertEqual(result.detected_patterns[0], "code:rm_code")

    def test_code_separators_and_case_are_normalized(self):
        self.assertEqual(extract_codes("need rm-000123 and RM_000456"), ["RM000123", "RM000456"])

    def test_code_inside_sentence_keeps_code_intent(self):
        result = self.classifier.classify("price of RC00A0123 please")

        self.assertEqual(result.intent, QueryIntent.EXACT_CODE)
        self.assertIn("RC00A0123", result.extracted_entities.codes)

    def test_codes_are_not_reported_as_names(self):
        result = self.classifier.classify("RM000123")

        self.assertEqual(result.extracted_entities.names, ())


class TestKeywordQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = QueryClassifier()

    def test_english_name_lookup(self):
        result = self.classifier.classify("code for Hyaluronic Acid")

        self.assertEqual(result.intent, QueryIntent.NAME_SEARCH)
        self.assertEqual(result.extracted_entities.names, ("Hyaluronic Acid",))
        self.assertEqual(result.recommended_strategies, (StrategyName.FUZZY, StrategyName.SEMANTIC))
        self.assertLessEqual(result.confidence, 0.85)

    def test_thai_name_lookup_with_latin_name(self):
        result = self.classifier.classify("รหัสของ Niacinamide")

        self.assertEqual(result.intent, QueryIntent.NAME_SEARCH)
        self.assertEqual(result.extracted_entities.names, ("Niacinamide",))
        self.assertEqual(result.language, "mixed")

    def test_thai_property_query(self):
        result = self.classifier.classify("สารที่ให้ความชุ่มชื้น")

        self.assertEqual(result.intent, QueryIntent.PROPERTY_SEARCH)
        self.assertEqual(result.extracted_entities.properties, ("moisturizing",))
        self.assertEqual(result.recommended_strategies, (StrategyName.SEMANTIC, StrategyName.METADATA))
        self.assertEqual(result.language, "thai")

    def test_english_property_query(self):
        result = self.classifier.classify("moisturizing ingredients for dry skin")

        self.assertEqual(result.intent, QueryIntent.PROPERTY_SEARCH)
        self.assertIn("moisturizing", result.extracted_entities.properties)
        self.assertIn("property:moisturizing", result.detected_patterns)


class TestGenericQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = QueryClassifier()

    def test_blank_and_punctuation_queries_fall_back_to_semantic(self):
        for query in ("", "   ", "?", "a"):
            with self.subTest(query=query):
                result = self.classifier.classify(query)
                self.assertEqual(result.intent, QueryIntent.GENERIC)
                self.assertEqual(result.confidence, 0.0)
                self.assertEqual(result.recommended_strategies, (StrategyName.SEMANTIC,))

    def test_low_confidence_runs_every_strategy(self):
        result = self.classifier.classify("xyzzy blorp")

        self.assertEqual(result.intent, QueryIntent.GENERIC)
        self.assertLess(result.confidence, 0.3)
        self.assertEqual(set(result.recommended_strategies), set(StrategyName))

    def test_material_vocabulary_raises_generic_confidence(self):
        result = self.classifier.classify("สารสกัดชาเขียว")

        self.assertEqual(result.intent, QueryIntent.GENERIC)
        self.assertEqual(result.confidence, 0.4)
        self.assertEqual(result.recommended_strategies, (StrategyName.SEMANTIC,))
        self.assertIn("extract ชาเขียว", result.expanded_queries)


class TestExpansion(unittest.TestCase):
    def test_original_query_comes_first_and_variants_are_capped(self):
        classifier = QueryClassifier(ClassifierConfig(max_expanded_queries=3))

        result = classifier.classify('code for "Hyaluronic Acid" RM000123')

        self.assertEqual(result.expanded_queries[0], 'code for "Hyaluronic Acid" RM000123')
        self.assertLessEqual(len(result.expanded_queries), 3)
        self.assertEqual(len(result.expanded_queries), len(set(result.expanded_queries)))

    def test_classification_is_deterministic(self):
        classifier = QueryClassifier()

        self.assertEqual(classifier.classify("รหัสของ Niacinamide"), classifier.classify("รหัสของ Niacinamide"))


class TestHelpers(unittest.TestCase):
    def test_property_tags_are_canonical(self):
        tags = extract_property_tags("Deep moisturising care with anti aging peptides")

        self.assertCountEqual(tags, ["moisturizing", "anti-aging"])

    def test_detect_language(self):
        self.assertEqual(detect_language("hyaluronic acid"), "english")
        self.assertEqual(detect_language("กรดไฮยาลูโรนิก"), "thai")


if __name__ == "__main__":
    unittest.main()
