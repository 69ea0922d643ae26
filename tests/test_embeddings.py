"""
Unit tests for the embedding provider, dimension normalization and backend selection.
"""

import numpy as np
import pytest

from services.embeddings import (
    HASH_BACKEND,
    EmbeddingBackend,
    EmbeddingProvider,
    get_embedding_backend,
    normalize_dimension,
)
from services.embeddings.providers.hash_embedder import hash_embed_text


class TestNormalizeDimension:
    """Tests for normalize_dimension()."""

    def test_short_vector_is_padded_and_unit_length(self) -> None:
        result = normalize_dimension([3.0, 4.0, 1.0], dimension=8)
        assert len(result) == 8
        assert np.linalg.norm(result) == pytest.approx(1.0)

    def test_padding_is_interpolated_not_zero(self) -> None:
        result = normalize_dimension([1.0, 2.0, 3.0], dimension=6)
        # Padded tail comes from scaled neighbour averages: 0.1*(1+2)/2, 0.1*(2+3)/2, 0.1*(3+1)/2
        ratios = np.asarray(result[3:]) / result[0]
        assert ratios == pytest.approx([0.15, 0.25, 0.2])

    def test_long_vector_is_truncated(self) -> None:
        result = normalize_dimension([1.0] * 10 + [100.0] * 5, dimension=10)
        assert len(result) == 10
        assert result == pytest.approx([1 / np.sqrt(10)] * 10)

    def test_exact_length_is_only_normalized(self) -> None:
        result = normalize_dimension([2.0, 0.0], dimension=2)
        assert result == pytest.approx([1.0, 0.0])

    def test_empty_vector_raises(self) -> None:
        with pytest.raises(ValueError):
            normalize_dimension([], dimension=4)


class TestHashEmbedder:
    """Tests for the deterministic offline backend."""

    def test_same_text_same_vector(self) -> None:
        assert hash_embed_text("hello world", 64) == hash_embed_text("hello world", 64)

    def test_distinct_texts_do_not_collide(self, embedder: EmbeddingProvider) -> None:
        vectors = {tuple(np.round(embedder.embed(f"text number {i}"), 10)) for i in range(1000)}
        assert len(vectors) == 1000

    def test_related_texts_are_closer_than_unrelated(self) -> None:
        base = np.asarray(hash_embed_text("pinecone vector memory search", 256))
        related = np.asarray(hash_embed_text("vector memory search results", 256))
        unrelated = np.asarray(hash_embed_text("banana orchard irrigation", 256))
        assert np.dot(base, related) > np.dot(base, unrelated)


class TestEmbeddingProvider:
    """Tests for EmbeddingProvider.embed() and embed_batch()."""

    def test_embed_returns_canonical_length(self, embedder: EmbeddingProvider) -> None:
        vector = embedder.embed("some text")
        assert len(vector) == embedder.dimension
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    def test_short_backend_vectors_are_padded(self) -> None:
        backend = EmbeddingBackend(name="tiny", embed=lambda texts: [[1.0, 2.0, 3.0] for _ in texts])
        provider = EmbeddingProvider(backend, dimension=384)
        assert len(provider.embed("x")) == 384

    def test_embed_propagates_backend_errors(self) -> None:
        def broken(texts):
            raise RuntimeError("backend down")

        provider = EmbeddingProvider(EmbeddingBackend(name="broken", embed=broken))
        with pytest.raises(RuntimeError):
            provider.embed("x")

    def test_embed_batch_replaces_failed_items(self) -> None:
        def flaky(texts):
            if "boom" in texts[0]:
                raise RuntimeError("rate limited")
            return HASH_BACKEND.embed(texts)

        provider = EmbeddingProvider(EmbeddingBackend(name="flaky", embed=flaky), dimension=32, sleep=lambda s: None)
        texts = ["one", "boom", "three", "four"]
        vectors = provider.embed_batch(texts)

        assert len(vectors) == len(texts)
        assert all(len(v) == 32 for v in vectors)
        assert vectors[0] == provider.embed("one")
        assert np.linalg.norm(vectors[1]) == pytest.approx(1.0)

    def test_embed_batch_sleeps_between_groups(self) -> None:
        sleeps = []
        provider = EmbeddingProvider(HASH_BACKEND, dimension=16, batch_size=3, batch_delay_seconds=0.2, sleep=sleeps.append)
        provider.embed_batch([f"t{i}" for i in range(7)])
        # Groups of 3, 3, 1 -> two pauses
        assert sleeps == [0.2, 0.2]

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError):
            EmbeddingProvider(HASH_BACKEND, batch_size=0)

    def test_describe_and_connection(self, embedder: EmbeddingProvider) -> None:
        info = embedder.describe()
        assert info["backend"] == "hash"
        assert info["dimension"] == embedder.dimension
        assert info["is_network"] is False
        assert embedder.test_connection() is True


class TestBackendSelection:
    """Tests for get_embedding_backend()."""

    def test_hash(self) -> None:
        assert get_embedding_backend("hash").name == "hash"

    def test_openai_without_key_falls_back_to_hash(self, monkeypatch) -> None:
        monkeypatch.setattr("services.embeddings.OPENAI_API_KEY", "")
        assert get_embedding_backend("openai").name == "hash"

    def test_openai_with_key(self, monkeypatch) -> None:
        monkeypatch.setattr("services.embeddings.OPENAI_API_KEY", "sk-test")
        backend = get_embedding_backend("openai")
        assert backend.name == "openai"
        assert backend.is_network is True

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError):
            get_embedding_backend("word2vec")
