# docbrief/workflow/brief_generator.py

import copy
import json
import logging
import re
from typing import Dict, List, Tuple

from pydantic import ValidationError

from docbrief.config import BRIEF_MAX_OUTPUT_TOKENS, BRIEF_TEMPERATURE
from docbrief.models import BriefCard
from docbrief.prompts.prompt_builder import build_brief_prompt
from docbrief.prompts.system_prompts import (
    BRIEF_SYSTEM_PROMPT,
    FALLBACK_BRIEF_SECTIONS,
)

logger = logging.getLogger(__name__)

# First "[" through last "]"; tolerates ```json fences and chatter around the array
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def fallback_sections() -> List[Dict]:
    return copy.deepcopy(FALLBACK_BRIEF_SECTIONS)


def parse_brief_sections(text: str) -> Tuple[List[Dict], bool]:
    """
    Parse the model output into brief cards.

    Returns (cards, used_template). Any parse or validation problem
    yields the fixed four-card template.
    """
    match = _JSON_ARRAY.search(text or "")

    if not match:
        logger.warning("No JSON array in brief response")
        return fallback_sections(), True

    try:

        raw = json.loads(match.group(0))

        if not isinstance(raw, list) or not raw:
            raise ValueError("brief must be a non-empty JSON array")

        cards = [BriefCard.model_validate(item).model_dump() for item in raw]

    except (ValueError, ValidationError) as e:

        logger.warning(
            "Brief response could not be parsed, using template",
            extra={"error": str(e)},
        )

        return fallback_sections(), True

    return cards, False


def generate_brief(
    title: str,
    brief_type: str,
    chunks: List[Dict],
    document_names: List[str],
    llm_client,
) -> Dict:
    """
    Build a brief from document chunks.

    LLM errors propagate; an unparseable answer falls back to the
    template.
    """
    names = ", ".join(document_names) or "Selected documents"

    prompt = build_brief_prompt(
        title=title,
        brief_type=brief_type,
        document_names=names,
        chunks=chunks,
    )

    text, provider = llm_client.generate(
        prompt,
        system_prompt=BRIEF_SYSTEM_PROMPT,
        temperature=BRIEF_TEMPERATURE,
        max_tokens=BRIEF_MAX_OUTPUT_TOKENS,
    )

    cards, used_template = parse_brief_sections(text)

    logger.info(
        "Brief generated",
        extra={
            "provider": provider,
            "total_chunks": len(chunks),
            "cards": len(cards),
            "used_template": used_template,
        },
    )

    return {
        "brief": cards,
        "source_documents": names,
        "total_chunks": len(chunks),
        "provider": provider,
        "used_template": used_template,
    }
