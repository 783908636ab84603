# tests/conftest.py
import hashlib
import io
import os
import re
import sys

import numpy as np
import pytest
from fastapi.testclient import TestClient
from qdrant_client import QdrantClient

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from docbrief.main import app
from docbrief.api import services
from docbrief.memory.qdrant_client import QdrantVectorDB
from docbrief.memory.store import VectorStore
from docbrief.observability.metrics import metrics_tracker
from docbrief.storage.registry import JsonRegistry


FAKE_DIM = 256


class FakeEmbedder:
    """
    Deterministic bag-of-words embedder.

    Texts with the same words get cosine similarity 1.0; texts with no
    words in common get (almost always) 0.0.
    """

    def __init__(self):
        self.calls = []

    def embed(self, texts, batch_size=32):
        self.calls.append(list(texts))

        vectors = np.zeros((len(texts), FAKE_DIM), dtype="float32")

        for row, text in enumerate(texts):
            for word in re.findall(r"[a-z0-9]+", text.lower()):
                index = int(hashlib.md5(word.encode()).hexdigest(), 16) % FAKE_DIM
                vectors[row, index] += 1.0

        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        return vectors / np.clip(norms, 1e-10, None)

    def get_dimension(self):
        return FAKE_DIM


class FakeLLM:
    """Scripted LLM: returns ``response``, or raises ``error`` when set."""

    def __init__(self, response="Mocked answer.", error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, prompt, system_prompt="", temperature=0.3, max_tokens=None):
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.response, "fake"

    def is_available(self):
        return self.error is None


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """
    Point every registry, the upload directory and the metrics file at
    tmp_path, and start each test without external services.
    """
    monkeypatch.setattr(
        services, "document_registry",
        JsonRegistry(str(tmp_path / "documents.json"), name="documents"),
    )
    monkeypatch.setattr(
        services, "brief_registry",
        JsonRegistry(str(tmp_path / "briefs.json"), name="briefs"),
    )
    monkeypatch.setattr(
        services, "settings_registry",
        JsonRegistry(str(tmp_path / "settings.json"), name="settings"),
    )
    monkeypatch.setattr(services, "UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr(services, "embedder", None)
    monkeypatch.setattr(services, "vector_store", None)
    monkeypatch.setattr(services, "llm_client", None)

    metrics_tracker.use_path(str(tmp_path / "metrics.json"))

    yield


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def vector_store():
    db = QdrantVectorDB(
        FAKE_DIM,
        collection="test_chunks",
        client=QdrantClient(location=":memory:"),
    )
    return VectorStore(dim=FAKE_DIM, db=db)


@pytest.fixture
def client(monkeypatch, fake_embedder, vector_store, fake_llm):
    """
    FastAPI test client wired to the fake embedder, an embedded Qdrant
    and the scripted LLM.
    """
    monkeypatch.setattr(services, "embedder", fake_embedder)
    monkeypatch.setattr(services, "vector_store", vector_store)
    monkeypatch.setattr(services, "llm_client", fake_llm)
    return TestClient(app)


@pytest.fixture
def bare_client():
    """Client with no embedder, vector store or LLM configured."""
    return TestClient(app)


@pytest.fixture
def upload_text(client):
    """
    Upload a text document and return the response JSON.

    Usage:
        doc = upload_text("Some content", filename="notes.txt")
    """
    def _upload(text, filename="notes.txt", process=True):
        response = client.post(
            "/upload",
            files={"file": (filename, text.encode("utf-8"), "text/plain")},
            data={"process": "true" if process else "false"},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _upload


@pytest.fixture
def sample_docx_bytes():
    from docx import Document

    doc = Document()
    doc.add_heading("Quarterly Plan", level=1)
    doc.add_paragraph("The launch budget is forty thousand dollars.")
    doc.add_paragraph("")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Owner"
    table.rows[0].cells[1].text = "Finance"

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def blank_pdf_bytes():
    from pypdf import PdfWriter

    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


SAMPLE_BRIEF_CARDS = [
    {"id": "summary-1", "type": "summary", "title": "Executive Summary",
     "content": "The quarter focuses on the product launch."},
    {"id": "keypoints-1", "type": "keypoints", "title": "Key Points",
     "content": "• Budget approved\n• Launch in March"},
    {"id": "actions-1", "type": "actions", "title": "Action Items",
     "content": "• Hire two engineers\n• Book venue"},
    {"id": "decisions-1", "type": "decisions", "title": "Key Decisions",
     "content": "• Launch date fixed"},
]


@pytest.fixture
def sample_cards():
    import copy
    return copy.deepcopy(SAMPLE_BRIEF_CARDS)
