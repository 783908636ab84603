from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response
import uuid
import logging
import time

from typing import get_args

from docbrief.api import services
from docbrief.api.routes import documents_or_404, raise_for_llm_error
from docbrief.export.exporter import export_brief
from docbrief.llm.multi_model_client import LLMGenerationError, LLMUnavailableError
from docbrief.observability.logger import log_request_error
from docbrief.observability.posthog_client import posthog_client
from docbrief.storage.registry import utc_now
from docbrief.workflow.brief_generator import generate_brief

from docbrief.models import (
    Brief,
    DeleteBriefResponse,
    ExportFormat,
    GenerateBriefRequest,
    GenerateBriefResponse,
    ListBriefsResponse,
    SaveBriefRequest,
    UpdateBriefRequest,
    UpdateCardRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/briefs", tags=["briefs"])


def generate_brief_id() -> str:
    return f"brief_{uuid.uuid4().hex[:12]}"


def brief_or_404(brief_id: str) -> dict:

    record = services.brief_registry.get(brief_id)

    if record is None:
        raise HTTPException(status_code=404, detail="Brief not found")

    return record


# ============================================================
# GENERATE
# ============================================================

@router.post("/generate", response_model=GenerateBriefResponse)
def generate(payload: GenerateBriefRequest, request: Request):

    document_ids = [d.strip() for d in payload.document_ids if d.strip()]

    if not document_ids:
        raise HTTPException(
            status_code=400,
            detail="At least one document ID is required",
        )

    records = documents_or_404(document_ids)

    store = services.require_vector_store()

    chunks = store.get_chunks(document_ids)

    if not chunks:
        raise HTTPException(
            status_code=404,
            detail="No content found for selected documents",
        )

    llm_client = services.require_llm_client()

    start_time = time.time()

    logger.info(
        "brief_generation_started",
        extra={"document_ids": document_ids, "chunks": len(chunks)},
    )

    try:

        result = generate_brief(
            title=payload.title.strip() or "Untitled Brief",
            brief_type=payload.brief_type,
            chunks=chunks,
            document_names=[r["filename"] for r in records],
            llm_client=llm_client,
        )

    except (LLMUnavailableError, LLMGenerationError) as e:

        log_request_error(
            logger, request.state.request_id, "brief_generation", e,
            document_ids=document_ids,
        )

        posthog_client.track_error(
            distinct_id=request.state.request_id,
            error_type=type(e).__name__,
            error_message=str(e),
            endpoint="/briefs/generate",
        )

        raise_for_llm_error(e)

    posthog_client.track_brief_generated(
        distinct_id=request.state.request_id,
        document_ids=document_ids,
        total_chunks=result["total_chunks"],
        provider=result["provider"],
        used_template=result["used_template"],
        latency=time.time() - start_time,
    )

    return GenerateBriefResponse(**result)


# ============================================================
# CRUD
# ============================================================

@router.post("", response_model=Brief)
def save_brief(payload: SaveBriefRequest, request: Request):

    brief_id = generate_brief_id()

    now = utc_now()

    record = services.brief_registry.put(brief_id, {
        "brief_id": brief_id,
        "title": payload.title,
        "brief_type": payload.brief_type,
        "cards": [card.model_dump() for card in payload.cards],
        "source_documents": payload.source_documents,
        "created_at": now,
        "updated_at": now,
    })

    logger.info("brief_saved", extra={"brief_id": brief_id})

    posthog_client.track_brief_saved(
        distinct_id=request.state.request_id,
        brief_id=brief_id,
        cards=len(record["cards"]),
    )

    return Brief(**record)


@router.get("", response_model=ListBriefsResponse)
def list_briefs():

    briefs = [
        Brief(**r)
        for r in services.brief_registry.values(
            sort_key=lambda r: r.get("created_at", ""), reverse=True
        )
    ]

    return ListBriefsResponse(briefs=briefs, total_briefs=len(briefs))


@router.get("/{brief_id}", response_model=Brief)
def get_brief(brief_id: str):

    return Brief(**brief_or_404(brief_id))


@router.put("/{brief_id}", response_model=Brief)
def update_brief(brief_id: str, payload: UpdateBriefRequest):

    brief_or_404(brief_id)

    changes = {"updated_at": utc_now()}

    if payload.title is not None:
        changes["title"] = payload.title

    if payload.cards is not None:
        changes["cards"] = [card.model_dump() for card in payload.cards]

    record = services.brief_registry.update(brief_id, **changes)

    logger.info("brief_updated", extra={"brief_id": brief_id})

    return Brief(**record)


@router.patch("/{brief_id}/cards/{card_id}", response_model=Brief)
def update_card(brief_id: str, card_id: str, payload: UpdateCardRequest):

    record = brief_or_404(brief_id)

    cards = record["cards"]

    for card in cards:

        if card["id"] != card_id:
            continue

        if payload.title is not None:
            card["title"] = payload.title

        if payload.content is not None:
            card["content"] = payload.content

        break

    else:
        raise HTTPException(status_code=404, detail="Card not found")

    record = services.brief_registry.update(
        brief_id, cards=cards, updated_at=utc_now()
    )

    return Brief(**record)


@router.delete("/{brief_id}", response_model=DeleteBriefResponse)
def delete_brief(brief_id: str):

    if not services.brief_registry.delete(brief_id):
        raise HTTPException(status_code=404, detail="Brief not found")

    logger.info("brief_deleted", extra={"brief_id": brief_id})

    return DeleteBriefResponse(
        brief_id=brief_id,
        message="Deleted",
        success=True,
    )


# ============================================================
# EXPORT
# ============================================================

@router.get("/{brief_id}/export")
def export(
    brief_id: str,
    request: Request,
    format: str = Query("markdown"),
):

    record = brief_or_404(brief_id)

    if format not in get_args(ExportFormat):
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported export format: {format}",
        )

    body, media_type, filename = export_brief(record, format)

    posthog_client.track_brief_exported(
        distinct_id=request.state.request_id,
        brief_id=brief_id,
        export_format=format,
    )

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
