# docbrief/observability/posthog_client.py

"""
PostHog product analytics.

- request_id is the distinct_id; the service has no user accounts
- Disabled when POSTHOG_API_KEY is not set
- Tracking failures are logged and never reach the caller
- Question text and file contents are never sent, only their sizes
"""

import os
import logging
from typing import Optional, Dict, Any, List

from posthog import Posthog


logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://app.posthog.com"


class PostHogClient:
    """
    Event wrapper for upload, chat and brief activity.

    Every public method is a no-op when analytics is disabled.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        client: Optional[Posthog] = None,
    ):

        self._client: Optional[Posthog] = client

        if self._client is not None:
            return

        api_key = api_key or os.getenv("POSTHOG_API_KEY")
        host = host or os.getenv("POSTHOG_HOST", DEFAULT_HOST)

        if not api_key:
            logger.info("PostHog disabled: POSTHOG_API_KEY not set")
            return

        try:

            self._client = Posthog(
                project_api_key=api_key,
                host=host,
                timeout=5,
                flush_interval=1,
            )

            logger.info("PostHog client initialized", extra={"host": host})

        except Exception as e:

            logger.error(
                "PostHog initialization failed",
                extra={"error": str(e)},
            )

            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _call(self, action: str, **kwargs):

        if self._client is None:
            return

        try:

            getattr(self._client, action)(**kwargs)

        except Exception as e:

            logger.warning(
                "PostHog call failed",
                extra={
                    "action": action,
                    "event": kwargs.get("event"),
                    "error": str(e),
                },
            )

    def _track(self, distinct_id: str, event: str, properties: Dict[str, Any]):

        for key, value in properties.items():
            if key.endswith("latency_seconds") and value is not None:
                properties[key] = round(value, 3)

        self._call(
            "capture",
            distinct_id=distinct_id,
            event=event,
            properties=properties,
        )

    def identify_request(self, distinct_id: str, properties: Optional[Dict[str, Any]] = None):

        self._call("identify", distinct_id=distinct_id, properties=properties or {})

    def shutdown(self):
        """Flush queued events; called on application shutdown."""

        self._call("shutdown")

    # ==========================================================
    # DOCUMENTS
    # ==========================================================

    def track_document_upload(
        self,
        distinct_id: str,
        document_id: str,
        filename: str,
        file_size: int,
        latency: float,
    ):

        self._track(distinct_id, "document_uploaded", {
            "document_id": document_id,
            "file_extension": os.path.splitext(filename or "")[1].lower(),
            "file_size": file_size,
            "latency_seconds": latency,
        })

    def track_document_processed(
        self,
        distinct_id: str,
        document_id: str,
        status: str,
        chunks: int,
        latency: float,
    ):

        self._track(distinct_id, "document_processed", {
            "document_id": document_id,
            "status": status,
            "chunks": chunks,
            "latency_seconds": latency,
        })

    # ==========================================================
    # CHAT
    # ==========================================================

    def track_question(
        self,
        distinct_id: str,
        document_ids: List[str],
        question: str,
        latency: float,
        provider: Optional[str],
        used_fallback: bool,
    ):

        self._track(distinct_id, "question_asked", {
            "document_count": len(document_ids),
            "question_length": len(question),
            "latency_seconds": latency,
            "provider": provider,
            "used_fallback": used_fallback,
        })

    def track_retrieval(
        self,
        distinct_id: str,
        document_ids: List[str],
        chunks_retrieved: int,
        top_score: Optional[float],
    ):

        self._track(distinct_id, "retrieval_completed", {
            "document_count": len(document_ids),
            "chunks_retrieved": chunks_retrieved,
            "top_score": top_score,
        })

    # ==========================================================
    # BRIEFS
    # ==========================================================

    def track_brief_generated(
        self,
        distinct_id: str,
        document_ids: List[str],
        total_chunks: int,
        provider: Optional[str],
        used_template: bool,
        latency: float,
    ):

        self._track(distinct_id, "brief_generated", {
            "document_count": len(document_ids),
            "total_chunks": total_chunks,
            "provider": provider,
            "used_template": used_template,
            "latency_seconds": latency,
        })

    def track_brief_saved(self, distinct_id: str, brief_id: str, cards: int):

        self._track(distinct_id, "brief_saved", {
            "brief_id": brief_id,
            "cards": cards,
        })

    def track_brief_exported(self, distinct_id: str, brief_id: str, export_format: str):

        self._track(distinct_id, "brief_exported", {
            "brief_id": brief_id,
            "format": export_format,
        })

    # ==========================================================
    # ERRORS
    # ==========================================================

    def track_error(
        self,
        distinct_id: str,
        error_type: str,
        error_message: str,
        endpoint: str,
    ):

        self._track(distinct_id, "system_error", {
            "error_type": error_type,
            "error_message": error_message[:500],
            "endpoint": endpoint,
        })


posthog_client = PostHogClient()
