# docbrief/workflow/document_processing.py

"""
Upload processing pipeline.

loader → chunker → embedder → vector_store

The registry record moves pending → processing → processed | failed.
A failure is stored on the record as ``error_message`` so it can be
shown in the dashboard and retried with a reprocess call.
"""

import logging
import time
from typing import Dict

from docbrief.memory.chunker import chunk_text
from docbrief.memory.loader import load_text
from docbrief.storage.registry import utc_now

logger = logging.getLogger(__name__)


def process_document(document_id: str, registry, embedder, store) -> Dict:
    """
    Extract, chunk, embed and store one document.

    Raises LookupError for an unknown id. Processing errors do not
    raise; they are returned as a ``failed`` record.
    """
    record = registry.get(document_id)

    if record is None:
        raise LookupError(f"Document not found: {document_id}")

    start_time = time.time()

    registry.update(
        document_id,
        status="processing",
        error_message=None,
        updated_at=utc_now(),
    )

    try:

        # reprocessing replaces earlier chunks, even when this run fails
        store.delete_document(document_id)

        text = load_text(record["storage_path"], record.get("file_type"))

        chunks = chunk_text(text)

        if not chunks:
            raise ValueError("No text extracted")

        embeddings = embedder.embed(chunks)

        store.add(
            embeddings=embeddings,
            chunks=chunks,
            document_id=document_id,
        )

    except Exception as e:

        logger.error(
            "Document processing failed",
            extra={
                "document_id": document_id,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )

        return registry.update(
            document_id,
            status="failed",
            chunks_count=0,
            error_message=str(e) or type(e).__name__,
            updated_at=utc_now(),
        )

    latency = time.time() - start_time

    logger.info(
        "Document processed",
        extra={
            "document_id": document_id,
            "chunks": len(chunks),
            "latency_seconds": round(latency, 3),
        },
    )

    return registry.update(
        document_id,
        status="processed",
        chunks_count=len(chunks),
        error_message=None,
        updated_at=utc_now(),
    )
