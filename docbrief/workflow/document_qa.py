# docbrief/workflow/document_qa.py
import logging
from typing import Callable, Dict, List, Tuple

from docbrief.config import CHAT_MAX_TOKENS, CHAT_TEMPERATURE
from docbrief.prompts.prompt_builder import build_chat_prompt
from docbrief.prompts.system_prompts import (
    DOCUMENT_CHAT_SYSTEM_PROMPT,
    NO_CONTEXT_ANSWER,
)

logger = logging.getLogger(__name__)


def build_sources(chunks: List[Dict], filenames: Dict[str, str]) -> List[str]:
    """
    Citations of the form "<filename> - Page <n>", de-duplicated in
    first-seen order.
    """
    sources = []

    for chunk in chunks:

        page = (chunk.get("metadata") or {}).get("page") or 1
        name = filenames.get(chunk.get("document_id"), chunk.get("document_id"))
        source = f"{name} - Page {page}"

        if source not in sources:
            sources.append(source)

    return sources


def answer_question(
    question: str,
    document_ids: List[str],
    retrieve_fn: Callable[[str], Tuple[List[Dict], bool]],
    llm_client,
    filenames: Dict[str, str],
) -> Dict:
    """
    Retrieval-augmented answer over the selected documents.

    LLM errors propagate to the caller.
    """
    chunks, used_fallback = retrieve_fn(question)

    if not chunks:
        return {
            "answer": NO_CONTEXT_ANSWER,
            "sources": [],
            "document_ids": document_ids,
            "chunks_used": 0,
            "used_fallback": used_fallback,
            "provider": None,
        }

    prompt = build_chat_prompt(question, chunks)

    answer, provider = llm_client.generate(
        prompt,
        system_prompt=DOCUMENT_CHAT_SYSTEM_PROMPT,
        temperature=CHAT_TEMPERATURE,
        max_tokens=CHAT_MAX_TOKENS,
    )

    logger.info(
        "Answer generated",
        extra={
            "provider": provider,
            "chunks_used": len(chunks),
            "used_fallback": used_fallback,
        },
    )

    return {
        "answer": answer,
        "sources": build_sources(chunks, filenames),
        "document_ids": document_ids,
        "chunks_used": len(chunks),
        "used_fallback": used_fallback,
        "provider": provider,
    }
