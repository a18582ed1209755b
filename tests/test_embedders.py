import importlib.util
import os
import unittest
from unittest import mock

import requests

from domain.errors import CollaboratorUnavailable
from infrastructure.embedding.cached_embedder import CachedEmbedder
from infrastructure.embedding.character_ngram_embedder import CharacterNgramEmbedder
from infrastructure.embedding.token_hash_embedder import TokenHashEmbedder
from infrastructure.embedding.ollama_embedder import OllamaEmbedder, OllamaEmbedderConfig


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingEmbedder(TokenHashEmbedder):
    def __init__(self) -> None:
        super().__init__()
        self.query_calls = 0

    def embed_query(self, text: str) -> list[float]:
        self.query_calls += 1
        return super().embed_query(text)


class TestQueryEmbeddingCache(unittest.TestCase):
    def test_entries_expire(self):
        clock = FakeClock()
        inner = CountingEmbedder()
        embedder = CachedEmbedder(inner, max_size=4, ttl_seconds=10, timer=clock)
        embedder.embed_query("RM000123")

        clock.now = 9.9
        embedder.embed_query("RM000123")
        self.assertEqual(inner.query_calls, 1)
        clock.now = 10.5
        self.assertEqual(embedder.cached_queries, 0)
        embedder.embed_query("RM000123")
        self.assertEqual(inner.query_calls, 2)

    def test_cache_size_is_bounded(self):
        inner = CountingEmbedder()
        embedder = CachedEmbedder(inner, max_size=2, ttl_seconds=10, timer=FakeClock())
        for text in ("a", "b", "c"):
            embedder.embed_query(text)

        self.assertEqual(embedder.cached_queries, 2)
        embedder.embed_query("c")
        self.assertEqual(inner.query_calls, 3)

    def test_invalid_limits(self):
        with self.assertRaises(ValueError):
            CachedEmbedder(TokenHashEmbedder(), max_size=0)
        with self.assertRaises(ValueError):
            CachedEmbedder(TokenHashEmbedder(), ttl_seconds=0)


class TestHashEmbedders(unittest.TestCase):
    def test_hash_embedders_return_consistent_dimensions(self):
        for embedder in (TokenHashEmbedder(), CharacterNgramEmbedder()):
            vectors = embedder.embed_texts(["กรดไฮยาลูโรนิก", "hyaluronic acid"])
            self.assertEqual(len(vectors), 2)
            self.assertTrue(all(len(v) == embedder.dimension for v in vectors))
            self.assertEqual(embedder.embed_query("hyaluronic acid"), vectors[1])

    def test_char_ngrams_prefer_related_strings(self):
        embedder = CharacterNgramEmbedder()
        query, close, far = embedder.embed_texts(["niacinamide", "niacinamide b3", "zzzz qqqq"])

        def dot(a, b):
            return sum(x * y for x, y in zip(a, b))

        self.assertGreater(dot(query, close), dot(query, far))


class TestCachedEmbedder(unittest.TestCase):
    def test_query_embeddings_are_cached(self):
        inner = TokenHashEmbedder()
        with mock.patch.object(inner, "embed_query", wraps=inner.embed_query) as spy:
            embedder = CachedEmbedder(inner)
            first = embedder.embed_query("RM000123")
            second = embedder.embed_query("RM000123")

        self.assertEqual(first, second)
        self.assertEqual(spy.call_count, 1)
        self.assertEqual(embedder.model_id, inner.model_id)


class TestOllamaEmbedder(unittest.TestCase):
    def test_embeddings_come_from_response(self):
        session = mock.Mock()
        session.post.return_value.json.return_value = {"embeddings": [[0.1, 0.2], [0.3, 0.4]]}
        embedder = OllamaEmbedder(OllamaEmbedderConfig(dimension=2), session=session)

        vectors = embedder.embed_texts(["a", "b"])

        self.assertEqual(vectors, [[0.1, 0.2], [0.3, 0.4]])
        url = session.post.call_args.args[0]
        self.assertTrue(url.endswith("/api/embed"))

    def test_transport_error_is_collaborator_unavailable(self):
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("refused")
        embedder = OllamaEmbedder(session=session)

        with self.assertRaises(CollaboratorUnavailable):
            embedder.embed_query("RM000123")


class TestSentenceTransformers(unittest.TestCase):
    @unittest.skipIf(
        importlib.util.find_spec("sentence_transformers") is None or not os.getenv("MATERIALSEARCH_ENABLE_ST"),
        "sentence_transformers not installed or MATERIALSEARCH_ENABLE_ST not set",
    )
    def test_multilingual_model_embeds_thai_and_english(self):
        from infrastructure.embedding.sentence_transformers_embedder import SentenceTransformersEmbedder  # noqa: PLC0415

        embedder = SentenceTransformersEmbedder()
        vectors = embedder.embed_texts(["กรดไฮยาลูโรนิก", "hyaluronic acid"])

        self.assertEqual(len(vectors[0]), embedder.dimension)


if __name__ == "__main__":
    unittest.main()
