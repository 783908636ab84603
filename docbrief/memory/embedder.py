# docbrief/memory/embedder.py

"""
OpenAI embedding wrapper.

chunker → embedder → vector_store

Output is always a float32 numpy matrix with L2-normalised rows,
so inner product equals cosine similarity.
"""

import logging
import numpy as np
from typing import List

from openai import OpenAI

from docbrief.config import (
    EMBEDDING_MAX_RETRIES,
    EMBEDDING_MODEL,
    EMBEDDING_TIMEOUT_SECONDS,
    MAX_CHUNKS_PER_DOCUMENT,
)

logger = logging.getLogger(__name__)

DEFAULT_EMBED_BATCH_SIZE = 32

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


class Embedder:
    """
    Batched embedding generator.

    Used for both document chunks and chat questions, so a question
    and the chunks it should match always share a model.
    """

    def __init__(self, model: str = EMBEDDING_MODEL, client: OpenAI = None):

        if model not in MODEL_DIMENSIONS:
            raise ValueError(f"Unsupported embedding model: {model}")

        self._model = model
        self._dimension = MODEL_DIMENSIONS[model]

        try:

            self._client = client or OpenAI(
                timeout=EMBEDDING_TIMEOUT_SECONDS,
                max_retries=EMBEDDING_MAX_RETRIES,
            )

        except Exception as e:

            logger.critical(
                "Embedding client initialization failed",
                extra={"model": model, "error": str(e)},
            )

            raise RuntimeError(f"Failed to initialize embedding client: {e}")

        logger.info(
            "Embedder ready",
            extra={"model": model, "dimension": self._dimension},
        )

    def get_dimension(self) -> int:
        return self._dimension

    def embed(
        self,
        texts: List[str],
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
    ) -> np.ndarray:
        """
        Embed ``texts`` in batches of ``batch_size``.

        Raises ValueError above MAX_CHUNKS_PER_DOCUMENT and RuntimeError
        when the API call fails.
        """
        if not texts:
            return np.empty((0, self._dimension), dtype="float32")

        if len(texts) > MAX_CHUNKS_PER_DOCUMENT:
            raise ValueError(
                f"Chunk count {len(texts)} exceeds limit of {MAX_CHUNKS_PER_DOCUMENT}"
            )

        batches = [
            texts[start:start + batch_size]
            for start in range(0, len(texts), batch_size)
        ]

        try:

            embeddings = np.vstack([self._embed_batch(batch) for batch in batches])

        except Exception as e:

            logger.error(
                "Embedding generation failed",
                extra={
                    "model": self._model,
                    "texts": len(texts),
                    "error": str(e),
                },
            )

            raise RuntimeError(f"Embedding generation failed: {e}")

        logger.info(
            "Embedding completed",
            extra={"texts": len(texts), "batches": len(batches)},
        )

        return embeddings

    def _embed_batch(self, batch: List[str]) -> np.ndarray:

        response = self._client.embeddings.create(model=self._model, input=batch)

        vectors = np.array(
            [item.embedding for item in response.data],
            dtype="float32",
        )

        if vectors.shape != (len(batch), self._dimension):
            raise ValueError(
                f"Unexpected embedding shape {vectors.shape}, "
                f"expected ({len(batch)}, {self._dimension})"
            )

        return normalize(vectors)


def normalize(vectors: np.ndarray) -> np.ndarray:

    norms = np.linalg.norm(vectors, axis=1, keepdims=True)

    return vectors / np.clip(norms, 1e-10, None)
