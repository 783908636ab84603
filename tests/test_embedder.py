# tests/test_embedder.py
from unittest.mock import Mock

import numpy as np
import pytest

from docbrief.memory.embedder import Embedder, normalize


def _fake_openai(dimension=1536):
    """OpenAI stand-in returning a constant, unnormalised vector per input."""
    client = Mock()

    def create(model, input):
        return Mock(data=[Mock(embedding=[3.0] * dimension) for _ in input])

    client.embeddings.create.side_effect = create
    return client


class TestEmbedder:

    def test_unsupported_model(self):
        with pytest.raises(ValueError):
            Embedder(model="not-a-model", client=Mock())

    def test_dimension(self):
        assert Embedder("text-embedding-3-large", client=Mock()).get_dimension() == 3072

    def test_embeddings_are_normalised_float32(self):
        embedder = Embedder(client=_fake_openai())

        vectors = embedder.embed(["one", "two"])

        assert vectors.shape == (2, 1536)
        assert vectors.dtype == np.float32
        assert np.allclose(np.linalg.norm(vectors, axis=1), 1.0)

    def test_batches(self):
        client = _fake_openai()
        embedder = Embedder(client=client)

        vectors = embedder.embed([f"text {i}" for i in range(70)], batch_size=32)

        assert vectors.shape[0] == 70
        assert client.embeddings.create.call_count == 3

    def test_empty_input(self):
        client = _fake_openai()

        vectors = Embedder(client=client).embed([])

        assert vectors.shape == (0, 1536)
        client.embeddings.create.assert_not_called()

    def test_wrong_dimension_from_api(self):
        embedder = Embedder(client=_fake_openai(dimension=10))

        with pytest.raises(RuntimeError, match="Unexpected embedding shape"):
            embedder.embed(["text"])

    def test_api_failure_is_runtime_error(self):
        client = Mock()
        client.embeddings.create.side_effect = Exception("401 invalid key")

        with pytest.raises(RuntimeError, match="Embedding generation failed"):
            Embedder(client=client).embed(["text"])


def test_normalize_handles_zero_rows():
    vectors = normalize(np.array([[0.0, 0.0], [3.0, 4.0]], dtype="float32"))

    assert np.allclose(vectors[0], 0.0)
    assert np.allclose(vectors[1], [0.6, 0.8])
