import logging
import uuid

import numpy as np

from typing import List, Dict, Optional

from qdrant_client.http.models import (
    PointStruct,
    Filter,
    FieldCondition,
    MatchAny,
    MatchValue,
    FilterSelector,
)

from docbrief.config import (
    MATCH_COUNT,
    MATCH_THRESHOLD,
)

from docbrief.memory.chunker import chunk_metadata
from docbrief.memory.embedder import normalize
from docbrief.memory.qdrant_client import QdrantVectorDB


logger = logging.getLogger(__name__)

_SCROLL_PAGE_SIZE = 256


def _document_filter(document_ids: List[str]) -> Filter:

    if len(document_ids) == 1:
        match = MatchValue(value=document_ids[0])
    else:
        match = MatchAny(any=list(document_ids))

    return Filter(
        must=[
            FieldCondition(key="document_id", match=match)
        ]
    )


class VectorStore:
    """
    Chunk storage and similarity search on top of Qdrant.

    Each point carries the chunk text and its position so that search
    results can be cited without a second lookup.
    """

    def __init__(self, dim: int, db: QdrantVectorDB = None):

        if dim <= 0:
            raise ValueError("Embedding dimension must be positive")

        self._dim = dim

        self._db = db or QdrantVectorDB(dim)

        logger.info(
            "VectorStore initialized",
            extra={
                "dimension": dim,
                "collection": self._db.collection,
            },
        )

    # ============================================================
    # WRITE
    # ============================================================

    def add(self, embeddings, chunks: List[str], document_id: str) -> int:

        embeddings = self._ensure_numpy(embeddings)

        if len(embeddings) != len(chunks):
            raise ValueError(
                f"Embedding count ({len(embeddings)}) does not match "
                f"chunk count ({len(chunks)})"
            )

        if not chunks:
            return 0

        if embeddings.shape[1] != self._dim:
            raise ValueError(
                f"Embedding dimension {embeddings.shape[1]} does not match "
                f"store dimension {self._dim}"
            )

        embeddings = normalize(embeddings)

        points = []

        for i, vector in enumerate(embeddings):

            points.append(
                PointStruct(
                    id=str(uuid.uuid4()),
                    vector=vector.tolist(),
                    payload={
                        "document_id": document_id,
                        "chunk_index": i,
                        "content": chunks[i],
                        "metadata": chunk_metadata(i, chunks[i]),
                    },
                )
            )

        self._db.client.upsert(
            collection_name=self._db.collection,
            points=points,
        )

        logger.info(
            "Chunks stored",
            extra={"document_id": document_id, "chunks": len(points)},
        )

        return len(points)

    def delete_document(self, document_id: str):

        self._db.client.delete(
            collection_name=self._db.collection,
            points_selector=FilterSelector(
                filter=_document_filter([document_id])
            ),
        )

        logger.info(
            "Deleted vectors from Qdrant",
            extra={"document_id": document_id},
        )

    # ============================================================
    # READ
    # ============================================================

    def search(
        self,
        embedding,
        document_ids: List[str],
        match_threshold: float = MATCH_THRESHOLD,
        match_count: int = MATCH_COUNT,
    ) -> List[Dict]:

        if not document_ids:
            return []

        embedding = normalize(self._ensure_numpy(embedding))

        response = self._db.client.query_points(
            collection_name=self._db.collection,
            query=embedding[0].tolist(),
            query_filter=_document_filter(document_ids),
            limit=match_count,
            score_threshold=match_threshold,
            with_payload=True,
        )

        results = []

        for hit in response.points:

            payload = hit.payload or {}

            results.append({
                "document_id": payload.get("document_id"),
                "chunk_index": payload.get("chunk_index"),
                "content": payload.get("content", ""),
                "metadata": payload.get("metadata") or {},
                "similarity": float(hit.score),
            })

        results.sort(key=lambda r: r["similarity"], reverse=True)

        return results

    def get_chunks(
        self,
        document_ids: List[str],
        limit: Optional[int] = None,
    ) -> List[Dict]:
        """
        Chunks of the given documents, in the order the ids were given
        and by chunk_index within each document.
        """

        if not document_ids:
            return []

        by_document: Dict[str, List[Dict]] = {d: [] for d in document_ids}

        offset = None

        while True:

            points, offset = self._db.client.scroll(
                collection_name=self._db.collection,
                scroll_filter=_document_filter(document_ids),
                limit=_SCROLL_PAGE_SIZE,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )

            for point in points:

                payload = point.payload or {}

                document_id = payload.get("document_id")

                if document_id not in by_document:
                    continue

                by_document[document_id].append({
                    "document_id": document_id,
                    "chunk_index": payload.get("chunk_index", 0),
                    "content": payload.get("content", ""),
                    "metadata": payload.get("metadata") or {},
                })

            if offset is None:
                break

        ordered = []

        for document_id in document_ids:
            ordered.extend(
                sorted(by_document[document_id], key=lambda c: c["chunk_index"])
            )

        if limit is not None:
            ordered = ordered[:limit]

        return ordered

    def count_chunks(self, document_id: Optional[str] = None) -> int:

        count_filter = _document_filter([document_id]) if document_id else None

        return self._db.client.count(
            collection_name=self._db.collection,
            count_filter=count_filter,
            exact=True,
        ).count

    def get_stats(self) -> Dict:

        return {
            "total_vectors": self.count_chunks(),
        }

    # ============================================================
    # HELPERS
    # ============================================================

    def _ensure_numpy(self, embeddings) -> np.ndarray:

        if not isinstance(embeddings, np.ndarray):

            embeddings = np.array(embeddings, dtype="float32")

        if embeddings.ndim == 1:

            embeddings = embeddings.reshape(1, -1)

        return embeddings
