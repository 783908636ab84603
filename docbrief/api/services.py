# docbrief/api/services.py

"""
Process-wide singletons shared by the routers.

Registries exist from import time; the embedder, vector store and LLM
client are built by ``init_services()`` at startup so that importing the
app never needs API keys. Routers read these attributes at call time.
"""

import logging
import os
from pathlib import Path

from fastapi import HTTPException

from docbrief.config import EMBEDDING_MODEL, STORAGE_DIR
from docbrief.llm.multi_model_client import MultiModelLLMClient
from docbrief.memory.embedder import MODEL_DIMENSIONS, Embedder
from docbrief.memory.store import VectorStore
from docbrief.storage.registry import JsonRegistry


logger = logging.getLogger(__name__)


UPLOAD_DIR = Path(STORAGE_DIR) / "uploads"

document_registry = JsonRegistry(
    os.path.join(STORAGE_DIR, "documents.json"), name="documents"
)

brief_registry = JsonRegistry(
    os.path.join(STORAGE_DIR, "briefs.json"), name="briefs"
)

settings_registry = JsonRegistry(
    os.path.join(STORAGE_DIR, "settings.json"), name="settings"
)

embedder = None
vector_store = None
llm_client = None


def init_services():

    global embedder, vector_store, llm_client

    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    document_registry.load()
    brief_registry.load()
    settings_registry.load()

    try:

        embedder = Embedder()

    except (RuntimeError, ValueError) as e:

        logger.warning(
            "Embedding service unavailable",
            extra={"error": str(e)},
        )

        embedder = None

    dimension = embedder.get_dimension() if embedder else MODEL_DIMENSIONS[EMBEDDING_MODEL]

    vector_store = VectorStore(dim=dimension)

    llm_client = MultiModelLLMClient()


# ============================================================
# ACCESSORS
# ============================================================

def require_embedder():

    if embedder is None:
        raise HTTPException(
            status_code=503,
            detail="Embedding service not configured",
        )

    return embedder


def require_vector_store():

    if vector_store is None:
        raise HTTPException(
            status_code=503,
            detail="Vector store not initialized",
        )

    return vector_store


def require_llm_client():

    if llm_client is None:
        raise HTTPException(
            status_code=503,
            detail="AI service not configured",
        )

    return llm_client
