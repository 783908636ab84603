# docbrief/memory/chunker.py

import logging
from typing import Dict, List

from docbrief.config import (
    CHUNK_SIZE,
    CHUNK_OVERLAP,
    CHUNKS_PER_PAGE,
    MIN_CHUNK_CHARACTERS,
)

logger = logging.getLogger(__name__)


def chunk_text(
    text: str,
    size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
    min_characters: int = MIN_CHUNK_CHARACTERS,
) -> List[str]:
    """
    Fixed-size character sliding window.

    Windows start every ``size - overlap`` characters. Each window is
    stripped; windows shorter than ``min_characters`` after stripping
    are dropped.
    """

    if size <= 0:
        raise ValueError(f"Invalid chunk size: {size}")

    if overlap < 0:
        raise ValueError(f"Invalid chunk overlap: {overlap}")

    if overlap >= size:
        raise ValueError(
            f"Overlap must be smaller than chunk size "
            f"(overlap={overlap}, size={size})"
        )

    if not text or not text.strip():
        logger.warning("Chunking skipped: empty text")
        return []

    step = size - overlap

    chunks = []

    for start in range(0, len(text), step):

        chunk = text[start:start + size].strip()

        if chunk and len(chunk) >= min_characters:
            chunks.append(chunk)

    logger.info(
        "Chunking completed",
        extra={
            "total_characters": len(text),
            "chunk_size": size,
            "overlap": overlap,
            "chunks_created": len(chunks),
        },
    )

    return chunks


def chunk_metadata(index: int, chunk: str) -> Dict:
    """Rough page estimate plus chunk length."""

    return {
        "page": index // CHUNKS_PER_PAGE + 1,
        "chunk_size": len(chunk),
    }
