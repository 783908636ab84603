# docbrief/main.py
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import os
import time
import uuid

from docbrief.api import services
from docbrief.api.briefs import router as briefs_router
from docbrief.api.routes import router as documents_router
from docbrief.api.settings import router as settings_router
from docbrief.config import CORS_ORIGINS, LOG_LEVEL, QDRANT_URL, STORAGE_DIR
from docbrief.observability.logger import (
    bind_request_id,
    get_logger,
    reset_request_id,
    setup_logging,
)
from docbrief.observability.metrics import metrics_tracker
from docbrief.observability.posthog_client import posthog_client

VERSION = "1.0.0"

REQUEST_ID_HEADER = "X-Request-ID"

# Paths polled by the dashboard and monitors; kept out of the latency metrics
UNTRACKED_PATHS = {"/health", "/metrics"}

setup_logging(log_level=LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title="docbrief API",
    description="Upload documents, chat over them, and build editable briefs",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
)

app.include_router(documents_router)
app.include_router(briefs_router)
app.include_router(settings_router)


def route_path(request: Request) -> str:
    """Route template such as /documents/{document_id}, or the raw path."""

    route = request.scope.get("route")

    return getattr(route, "path", request.url.path)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """
    Give every request an id (the caller's X-Request-ID when present),
    bind it to the log context and record latency and failures.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id

    token = bind_request_id(request_id)
    tracked = request.url.path not in UNTRACKED_PATHS

    posthog_client.identify_request(
        distinct_id=request_id,
        properties={"entry_point": request.url.path, "method": request.method},
    )

    logger.info(
        "request_started",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        },
    )

    start_time = time.time()

    try:

        response = await call_next(request)

    except Exception as e:

        if tracked:
            metrics_tracker.record_failure(route_path(request))

        logger.error(
            "request_failed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "latency_seconds": round(time.time() - start_time, 3),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )

        reset_request_id(token)
        raise

    latency = time.time() - start_time

    if tracked:
        if response.status_code >= 500:
            metrics_tracker.record_failure(route_path(request))
        else:
            metrics_tracker.record_success(latency, route_path(request))

    logger.info(
        "request_completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_seconds": round(latency, 3),
        },
    )

    reset_request_id(token)

    response.headers[REQUEST_ID_HEADER] = request_id

    return response


@app.on_event("startup")
async def startup_event():

    services.init_services()

    logger.info(
        "application_startup",
        extra={
            "version": VERSION,
            "storage_dir": STORAGE_DIR,
            "vector_db": "embedded" if QDRANT_URL == ":memory:" else QDRANT_URL,
            "embedder_ready": services.embedder is not None,
            "llm_ready": services.llm_client.is_available(),
            "analytics": posthog_client.enabled,
        },
    )

    if QDRANT_URL == ":memory:":
        logger.warning("vector_db_in_memory: vectors are lost on restart")

    for key in ("OPENAI_API_KEY", "GEMINI_API_KEY"):
        if not os.getenv(key):
            logger.warning("missing_api_key", extra={"key": key})


@app.on_event("shutdown")
async def shutdown_event():

    posthog_client.shutdown()

    logger.info("application_shutdown")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):

    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "unhandled_exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    posthog_client.track_error(
        distinct_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
        endpoint=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal error occurred. Please try again.",
            "request_id": request_id,
            "error_type": type(exc).__name__,
        },
        headers={REQUEST_ID_HEADER: request_id},
    )


@app.get("/")
async def root():

    return {
        "message": "docbrief API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
