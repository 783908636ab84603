# tests/test_store.py
import pytest

from docbrief.memory.retriever import retrieve


def _add(store, embedder, document_id, chunks):
    store.add(embedder.embed(chunks), chunks, document_id)


class TestVectorStore:
    """VectorStore on an embedded Qdrant."""

    def test_add_and_count(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["alpha one", "alpha two"])
        _add(vector_store, fake_embedder, "doc_b", ["beta one"])

        assert vector_store.count_chunks() == 3
        assert vector_store.count_chunks("doc_a") == 2
        assert vector_store.get_stats() == {"total_vectors": 3}

    def test_add_rejects_mismatched_lengths(self, vector_store, fake_embedder):
        with pytest.raises(ValueError):
            vector_store.add(fake_embedder.embed(["one"]), ["one", "two"], "doc_a")

    def test_add_rejects_wrong_dimension(self, vector_store):
        with pytest.raises(ValueError):
            vector_store.add([[1.0, 0.0, 0.0]], ["one"], "doc_a")

    def test_search_filters_by_document(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["launch budget approved"])
        _add(vector_store, fake_embedder, "doc_b", ["launch budget approved"])

        results = vector_store.search(
            fake_embedder.embed(["launch budget approved"]),
            document_ids=["doc_b"],
        )

        assert len(results) == 1
        assert results[0]["document_id"] == "doc_b"
        assert results[0]["content"] == "launch budget approved"
        assert results[0]["metadata"]["page"] == 1
        assert results[0]["similarity"] == pytest.approx(1.0, abs=1e-4)

    def test_search_applies_threshold(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["quarterly revenue figures"])

        results = vector_store.search(
            fake_embedder.embed(["holiday party venue"]),
            document_ids=["doc_a"],
            match_threshold=0.7,
        )

        assert results == []

    def test_search_orders_and_limits(self, vector_store, fake_embedder):
        chunks = [
            "budget plan review",
            "budget plan",
            "budget plan review meeting notes today",
        ]
        _add(vector_store, fake_embedder, "doc_a", chunks)

        results = vector_store.search(
            fake_embedder.embed(["budget plan review"]),
            document_ids=["doc_a"],
            match_threshold=0.0,
            match_count=2,
        )

        assert len(results) == 2
        assert results[0]["content"] == "budget plan review"
        assert results[0]["similarity"] >= results[1]["similarity"]

    def test_search_without_documents_is_empty(self, vector_store, fake_embedder):
        assert vector_store.search(fake_embedder.embed(["x"]), document_ids=[]) == []

    def test_get_chunks_ordering(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["a0", "a1", "a2"])
        _add(vector_store, fake_embedder, "doc_b", ["b0", "b1"])

        chunks = vector_store.get_chunks(["doc_b", "doc_a"])

        assert [c["content"] for c in chunks] == ["b0", "b1", "a0", "a1", "a2"]

    def test_get_chunks_limit(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["a0", "a1", "a2", "a3"])

        chunks = vector_store.get_chunks(["doc_a"], limit=3)

        assert [c["chunk_index"] for c in chunks] == [0, 1, 2]

    def test_delete_document(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["a0", "a1"])
        _add(vector_store, fake_embedder, "doc_b", ["b0"])

        vector_store.delete_document("doc_a")

        assert vector_store.count_chunks("doc_a") == 0
        assert vector_store.count_chunks() == 1


class TestRetrieve:

    def test_returns_search_hits(self, vector_store, fake_embedder):
        _add(vector_store, fake_embedder, "doc_a", ["launch budget approved"])

        chunks, used_fallback = retrieve(
            "launch budget approved", fake_embedder, vector_store, ["doc_a"]
        )

        assert used_fallback is False
        assert len(chunks) == 1

    def test_falls_back_when_search_fails(self, vector_store, fake_embedder, monkeypatch):
        _add(vector_store, fake_embedder, "doc_a", ["c0", "c1", "c2", "c3"])

        def broken_search(**kwargs):
            raise RuntimeError("rpc unavailable")

        monkeypatch.setattr(vector_store, "search", broken_search)

        chunks, used_fallback = retrieve("anything", fake_embedder, vector_store, ["doc_a"])

        assert used_fallback is True
        assert [c["content"] for c in chunks] == ["c0", "c1", "c2"]

    def test_embedding_errors_propagate(self, vector_store):

        class BrokenEmbedder:
            def embed(self, texts):
                raise RuntimeError("Embedding generation failed")

        with pytest.raises(RuntimeError):
            retrieve("question", BrokenEmbedder(), vector_store, ["doc_a"])
