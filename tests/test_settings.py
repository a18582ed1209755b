import tempfile
import unittest
from pathlib import Path

from domain.entities import StrategyName
from infrastructure.config import ContainerConfig, _resolve_model_reference, build_default_container
from infrastructure.settings import SearchSettings


class TestSearchSettings(unittest.TestCase):
    def test_defaults_are_consistent(self):
        settings = SearchSettings.from_env({})

        self.assertEqual(settings.fusion.strategy_weights[StrategyName.EXACT], 1.0)
        self.assertEqual(settings.router.available_bonus, 0.05)
        self.assertEqual(settings.orchestrator.strategy_timeout_seconds, 2.0)

    def test_environment_overrides(self):
        settings = SearchSettings.from_env(
            {
                "MATERIALSEARCH_FUZZY_THRESHOLD": "0.7",
                "MATERIALSEARCH_LANGUAGES": "th",
                "MATERIALSEARCH_TOP_K": "5",
                "MATERIALSEARCH_WEIGHT_SEMANTIC": "0.7",
            }
        )

        self.assertEqual(settings.strategies.fuzzy_threshold, 0.7)
        self.assertEqual(settings.chunker.languages, ("th",))
        self.assertEqual(settings.orchestrator.default_top_k, 5)
        self.assertEqual(settings.fusion.strategy_weights[StrategyName.SEMANTIC], 0.7)

    def test_unparseable_value_names_the_variable(self):
        with self.assertRaisesRegex(ValueError, "MATERIALSEARCH_CHUNK_SIZE"):
            SearchSettings.from_env({"MATERIALSEARCH_CHUNK_SIZE": "big"})

    def test_out_of_range_value_is_rejected(self):
        with self.assertRaises(ValueError):
            SearchSettings.from_env({"MATERIALSEARCH_FUZZY_THRESHOLD": "1.5"})

    def test_weights_that_let_exact_lose_are_rejected(self):
        with self.assertRaisesRegex(ValueError, "outranked"):
            SearchSettings.from_env({"MATERIALSEARCH_WEIGHT_SEMANTIC": "0.95"})
        with self.assertRaisesRegex(ValueError, "outranked"):
            SearchSettings.from_env({"MATERIALSEARCH_AVAILABLE_BONUS": "0.2"})


class TestContainer(unittest.TestCase):
    def test_container_config_from_env(self):
        cfg = ContainerConfig.from_env(
            {
                "MATERIALSEARCH_EMBEDDER": "token-hash",
                "MATERIALSEARCH_FULL_COLLECTION": "",
                "MATERIALSEARCH_CACHE_QUERY_EMBEDDINGS": "0",
            }
        )

        self.assertEqual(cfg.embedder, "token-hash")
        self.assertIsNone(cfg.full_collection)
        self.assertFalse(cfg.cache_query_embeddings)

    def test_single_collection_container(self):
        container = build_default_container(ContainerConfig(full_collection=None))

        self.assertEqual([c.name for c in container.router.collections], ["in_stock"])
        with self.assertRaises(KeyError):
            container.collection("all_fda")

    def test_sqlite_store_is_created_under_data_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            build_default_container(ContainerConfig(catalog_store="sqlite", data_dir=tmp))

            self.assertTrue((Path(tmp) / "materialsearch.db").exists())


class TestModelResolution(unittest.TestCase):
    def test_resolves_model_from_models_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            model_ref = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"
            model_path = Path(tmp) / model_ref
            model_path.mkdir(parents=True)
            cfg = ContainerConfig(models_dir=tmp)

            resolved = _resolve_model_reference(model_ref, cfg)

            self.assertEqual(resolved, str(model_path))

    def test_keeps_original_model_when_local_dir_missing(self):
        cfg = ContainerConfig(models_dir="/tmp/materialsearch-not-existing")

        resolved = _resolve_model_reference("sentence-transformers/all-MiniLM-L6-v2", cfg)

        self.assertEqual(resolved, "sentence-transformers/all-MiniLM-L6-v2")


if __name__ == "__main__":
    unittest.main()
