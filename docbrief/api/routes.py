from fastapi import APIRouter, UploadFile, File, HTTPException, Form, Request
import asyncio
import uuid
import logging
import os
import time

from typing import Dict, List

from docbrief.api import services
from docbrief.config import ALLOWED_FILE_EXTENSIONS, MAX_FILE_SIZE_MB
from docbrief.llm.multi_model_client import LLMGenerationError, LLMUnavailableError
from docbrief.memory.retriever import retrieve
from docbrief.observability.logger import log_request_error
from docbrief.observability.metrics import metrics_tracker
from docbrief.observability.posthog_client import posthog_client
from docbrief.storage.registry import utc_now
from docbrief.workflow.document_processing import process_document
from docbrief.workflow.document_qa import answer_question

from docbrief.models import (
    AskRequest,
    AskResponse,
    Brief,
    DashboardResponse,
    DeleteDocumentResponse,
    DocumentInfo,
    HealthResponse,
    ListDocumentsResponse,
    ProcessResponse,
    UploadResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_ITEMS = 5


# ============================================================
# HELPERS
# ============================================================

def generate_document_id() -> str:
    return f"doc_{uuid.uuid4().hex[:12]}"


def validate_extension(filename: str) -> str:

    extension = os.path.splitext(filename or "")[1].lower()

    if extension not in ALLOWED_FILE_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Unsupported file type '{extension or filename}'. "
                f"Allowed: {', '.join(ALLOWED_FILE_EXTENSIONS)}"
            ),
        )

    return extension


def validate_file_size(content: bytes):

    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    size_mb = len(content) / (1024 * 1024)

    if size_mb > MAX_FILE_SIZE_MB:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {size_mb:.2f}MB (limit {MAX_FILE_SIZE_MB}MB)",
        )


def document_or_404(document_id: str) -> dict:

    record = services.document_registry.get(document_id)

    if record is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return record


def documents_or_404(document_ids: List[str]) -> List[dict]:

    missing = [d for d in document_ids if d not in services.document_registry]

    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Documents not found: {', '.join(missing)}",
        )

    return [services.document_registry.get(d) for d in document_ids]


def newest_documents() -> List[dict]:
    return services.document_registry.values(
        sort_key=lambda r: r.get("created_at", ""), reverse=True
    )


def raise_for_llm_error(e: Exception):

    if isinstance(e, LLMUnavailableError):
        raise HTTPException(status_code=503, detail="AI service not configured")

    raise HTTPException(status_code=500, detail="AI generation failed")


def track_processing(request: Request, record: dict, latency: float):

    posthog_client.track_document_processed(
        distinct_id=request.state.request_id,
        document_id=record["document_id"],
        status=record["status"],
        chunks=record.get("chunks_count", 0),
        latency=latency,
    )


# ============================================================
# HEALTH
# ============================================================

@router.get("/health", response_model=HealthResponse)
def health_check():

    store = services.vector_store

    return HealthResponse(
        status="healthy" if store is not None else "degraded",
        total_documents=len(services.document_registry),
        total_vectors=store.get_stats()["total_vectors"] if store else 0,
        llm_available=bool(services.llm_client and services.llm_client.is_available()),
    )


# ============================================================
# UPLOAD DOCUMENT
# ============================================================

@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    request: Request,
    file: UploadFile = File(None),
    process: bool = Form(True),
):

    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    extension = validate_extension(file.filename)

    file_bytes = await file.read()

    validate_file_size(file_bytes)

    start_time = time.time()

    document_id = generate_document_id()

    services.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    file_path = services.UPLOAD_DIR / f"{document_id}{extension}"

    with file_path.open("wb") as buffer:
        buffer.write(file_bytes)

    now = utc_now()

    record = services.document_registry.put(document_id, {
        "document_id": document_id,
        "filename": file.filename,
        "file_type": file.content_type or "application/octet-stream",
        "file_size": len(file_bytes),
        "storage_path": str(file_path),
        "status": "pending",
        "chunks_count": 0,
        "error_message": None,
        "created_at": now,
        "updated_at": now,
    })

    logger.info(
        "document_stored",
        extra={
            "document_id": document_id,
            "upload_filename": file.filename,
            "file_size": len(file_bytes),
        },
    )

    posthog_client.track_document_upload(
        distinct_id=request.state.request_id,
        document_id=document_id,
        filename=file.filename,
        file_size=len(file_bytes),
        latency=time.time() - start_time,
    )

    message = "Document uploaded successfully"

    if process:

        if services.embedder is None or services.vector_store is None:

            message = "Document stored; embedding service not configured"

        else:

            record = await asyncio.to_thread(
                process_document,
                document_id,
                services.document_registry,
                services.embedder,
                services.vector_store,
            )

            track_processing(request, record, time.time() - start_time)

            if record["status"] == "processed":
                message = "Document uploaded and processed successfully"
            else:
                message = f"Document stored but processing failed: {record['error_message']}"

    return UploadResponse(
        document_id=document_id,
        filename=file.filename,
        status=record["status"],
        chunks_created=record.get("chunks_count", 0),
        message=message,
    )


# ============================================================
# PROCESS DOCUMENT
# ============================================================

@router.post("/documents/{document_id}/process", response_model=ProcessResponse)
def reprocess_document(document_id: str, request: Request):

    document_or_404(document_id)

    start_time = time.time()

    record = process_document(
        document_id,
        services.document_registry,
        services.require_embedder(),
        services.require_vector_store(),
    )

    track_processing(request, record, time.time() - start_time)

    if record["status"] != "processed":
        raise HTTPException(
            status_code=422,
            detail=f"Processing failed: {record['error_message']}",
        )

    return ProcessResponse(
        document_id=document_id,
        status=record["status"],
        chunks_created=record["chunks_count"],
        message="Document processed successfully",
    )


# ============================================================
# ASK QUESTION
# ============================================================

@router.post("/ask", response_model=AskResponse)
def ask_question(payload: AskRequest, request: Request):

    if not payload.question or not payload.document_ids:
        raise HTTPException(
            status_code=400,
            detail="Question and document IDs are required",
        )

    records = documents_or_404(payload.document_ids)

    embedder = services.require_embedder()
    store = services.require_vector_store()
    llm_client = services.require_llm_client()

    start_time = time.time()

    def retrieve_fn(question: str):

        chunks, used_fallback = retrieve(
            question=question,
            embedder=embedder,
            store=store,
            document_ids=payload.document_ids,
        )

        posthog_client.track_retrieval(
            distinct_id=request.state.request_id,
            document_ids=payload.document_ids,
            chunks_retrieved=len(chunks),
            top_score=chunks[0].get("similarity") if chunks else None,
        )

        return chunks, used_fallback

    try:

        result = answer_question(
            question=payload.question,
            document_ids=payload.document_ids,
            retrieve_fn=retrieve_fn,
            llm_client=llm_client,
            filenames={r["document_id"]: r["filename"] for r in records},
        )

    except (LLMUnavailableError, LLMGenerationError) as e:

        log_request_error(logger, request.state.request_id, "ask", e)

        posthog_client.track_error(
            distinct_id=request.state.request_id,
            error_type=type(e).__name__,
            error_message=str(e),
            endpoint="/ask",
        )

        raise_for_llm_error(e)

    posthog_client.track_question(
        distinct_id=request.state.request_id,
        document_ids=payload.document_ids,
        question=payload.question,
        latency=time.time() - start_time,
        provider=result["provider"],
        used_fallback=result["used_fallback"],
    )

    return AskResponse(**result)


# ============================================================
# LIST / GET / DELETE DOCUMENTS
# ============================================================

@router.get("/documents", response_model=ListDocumentsResponse)
def list_documents():

    documents = [DocumentInfo(**r) for r in newest_documents()]

    return ListDocumentsResponse(
        documents=documents,
        total_documents=len(documents),
        total_chunks=sum(d.chunks_count for d in documents),
    )


@router.get("/documents/{document_id}", response_model=DocumentInfo)
def get_document(document_id: str):

    return DocumentInfo(**document_or_404(document_id))


@router.delete("/documents/{document_id}",
               response_model=DeleteDocumentResponse)
def delete_document(document_id: str):

    record = document_or_404(document_id)

    if services.vector_store is not None:
        services.vector_store.delete_document(document_id)

    storage_path = record.get("storage_path")

    if storage_path and os.path.exists(storage_path):
        os.remove(storage_path)

    services.document_registry.delete(document_id)

    logger.info("document_deleted", extra={"document_id": document_id})

    return DeleteDocumentResponse(
        document_id=document_id,
        message="Deleted",
        success=True,
    )


# ============================================================
# DASHBOARD
# ============================================================

@router.get("/dashboard", response_model=DashboardResponse)
def dashboard():

    documents = newest_documents()

    by_status: Dict[str, int] = {
        "pending": 0, "processing": 0, "processed": 0, "failed": 0,
    }

    for record in documents:
        by_status[record["status"]] = by_status.get(record["status"], 0) + 1

    briefs = services.brief_registry.values(
        sort_key=lambda r: r.get("created_at", ""), reverse=True
    )

    return DashboardResponse(
        total_documents=len(documents),
        documents_by_status=by_status,
        total_chunks=sum(r.get("chunks_count", 0) for r in documents),
        total_briefs=len(briefs),
        recent_documents=[DocumentInfo(**r) for r in documents[:RECENT_ITEMS]],
        recent_briefs=[Brief(**r) for r in briefs[:RECENT_ITEMS]],
    )


# ============================================================
# METRICS ENDPOINT
# ============================================================

@router.get("/metrics")
def get_metrics():

    return metrics_tracker.get_metrics()
