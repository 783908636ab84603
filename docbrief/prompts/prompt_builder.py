# docbrief/prompts/prompt_builder.py

from typing import List, Dict

from docbrief.config import MAX_BRIEF_CONTEXT_CHARACTERS, MAX_CONTEXT_CHARACTERS
from docbrief.prompts.system_prompts import BRIEF_PROMPT_TEMPLATE


def join_chunks(chunks: List[Dict], limit: int) -> str:
    """Chunk contents separated by blank lines, cut at ``limit`` characters."""

    return "\n\n".join(c.get("content", "") for c in chunks)[:limit]


def build_chat_prompt(
    question: str,
    chunks: List[Dict],
    max_characters: int = MAX_CONTEXT_CHARACTERS,
) -> str:

    context = join_chunks(chunks, max_characters)

    return f"Context from documents:\n{context}\n\nQuestion: {question}"


def build_brief_prompt(
    title: str,
    brief_type: str,
    document_names: str,
    chunks: List[Dict],
    max_characters: int = MAX_BRIEF_CONTEXT_CHARACTERS,
) -> str:

    return BRIEF_PROMPT_TEMPLATE.format(
        title=title,
        brief_type=brief_type,
        document_names=document_names,
        content=join_chunks(chunks, max_characters),
    )
