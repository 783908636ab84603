# docbrief/memory/retriever.py
import logging
from typing import List, Dict, Tuple

from docbrief.config import FALLBACK_CHUNK_COUNT, MATCH_COUNT, MATCH_THRESHOLD

logger = logging.getLogger(__name__)


def retrieve(
    question: str,
    embedder,
    store,
    document_ids: List[str],
    match_threshold: float = MATCH_THRESHOLD,
    match_count: int = MATCH_COUNT,
) -> Tuple[List[Dict], bool]:
    """
    Embed the question and search the selected documents.

    Embedding errors propagate. If the similarity search itself fails,
    the first chunks of the selected documents are returned instead.

    Returns:
        (chunks, used_fallback). Each chunk has document_id,
        chunk_index, content, metadata and, for search hits, similarity.
    """
    query_embedding = embedder.embed([question])

    try:

        results = store.search(
            embedding=query_embedding,
            document_ids=document_ids,
            match_threshold=match_threshold,
            match_count=match_count,
        )

        return results, False

    except Exception as e:

        logger.error(
            "Similarity search failed",
            extra={"document_ids": document_ids, "error": str(e)},
            exc_info=True,
        )

        return fallback_chunks(store, document_ids), True


def fallback_chunks(
    store,
    document_ids: List[str],
    count: int = FALLBACK_CHUNK_COUNT,
) -> List[Dict]:
    """First chunks of the selected documents."""

    chunks = store.get_chunks(document_ids, limit=count)

    logger.info(
        "Using fallback chunks",
        extra={"document_ids": document_ids, "chunks": len(chunks)},
    )

    return chunks
