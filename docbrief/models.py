from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional


DocumentStatus = Literal["pending", "processing", "processed", "failed"]

CardType = Literal["summary", "keypoints", "actions", "decisions"]

ExportFormat = Literal["markdown", "docx", "json"]


# ============================================================
# DOCUMENTS
# ============================================================

class UploadResponse(BaseModel):
    """Response after uploading a document."""
    document_id: str
    filename: str
    status: DocumentStatus
    chunks_created: int
    message: str = "Document uploaded successfully"


class DocumentInfo(BaseModel):
    """A stored document and its processing state."""
    document_id: str
    filename: str
    file_type: str
    file_size: int
    status: DocumentStatus
    chunks_count: int = 0
    error_message: Optional[str] = None
    created_at: str
    updated_at: str


class ListDocumentsResponse(BaseModel):
    documents: List[DocumentInfo]
    total_documents: int
    total_chunks: int


class ProcessResponse(BaseModel):
    document_id: str
    status: DocumentStatus
    chunks_created: int
    message: str


class DeleteDocumentResponse(BaseModel):
    document_id: str
    message: str
    success: bool


# ============================================================
# CHAT
# ============================================================

class AskRequest(BaseModel):
    """A question over one or more documents."""
    question: str = Field("", max_length=4000)
    document_ids: List[str] = Field(default_factory=list)

    @field_validator("question")
    @classmethod
    def strip_question(cls, v):
        return v.strip()

    @field_validator("document_ids")
    @classmethod
    def clean_document_ids(cls, v):
        """Drop blanks and duplicates, keep order."""
        seen = []
        for doc_id in v:
            doc_id = doc_id.strip()
            if doc_id and doc_id not in seen:
                seen.append(doc_id)
        return seen


class AskResponse(BaseModel):
    answer: str
    sources: List[str]
    document_ids: List[str]
    chunks_used: int
    used_fallback: bool = False
    provider: Optional[str] = None


# ============================================================
# BRIEFS
# ============================================================

class BriefCard(BaseModel):
    """
    One section of a brief.

    The dashboard's per-card ``isEditing`` flag is UI state; it is
    accepted on input and dropped.
    """
    id: str = Field(..., min_length=1)
    type: CardType
    title: str
    content: str


class GenerateBriefRequest(BaseModel):
    document_ids: List[str] = Field(default_factory=list)
    title: str = "Untitled Brief"
    brief_type: str = "executive"


class GenerateBriefResponse(BaseModel):
    brief: List[BriefCard]
    source_documents: str
    total_chunks: int
    provider: Optional[str] = None
    used_template: bool = False


class SaveBriefRequest(BaseModel):
    title: str
    brief_type: str = "executive"
    cards: List[BriefCard]
    source_documents: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()


class UpdateBriefRequest(BaseModel):
    title: Optional[str] = None
    cards: Optional[List[BriefCard]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip() if v is not None else v


class UpdateCardRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class Brief(BaseModel):
    brief_id: str
    title: str
    brief_type: str
    cards: List[BriefCard]
    source_documents: List[str]
    created_at: str
    updated_at: str


class ListBriefsResponse(BaseModel):
    briefs: List[Brief]
    total_briefs: int


class DeleteBriefResponse(BaseModel):
    brief_id: str
    message: str
    success: bool


# ============================================================
# SETTINGS
# ============================================================

class NotificationSettings(BaseModel):
    upload_complete: bool = True
    brief_generated: bool = True
    weekly_digest: bool = False
    system_updates: bool = True


class UpdateNotificationsRequest(BaseModel):
    upload_complete: Optional[bool] = None
    brief_generated: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    system_updates: Optional[bool] = None


class IntegrationState(BaseModel):
    connected: bool = False
    status: Literal["connected", "disconnected"] = "disconnected"


class Settings(BaseModel):
    notifications: NotificationSettings
    integrations: Dict[str, IntegrationState]


# ============================================================
# DASHBOARD / HEALTH
# ============================================================

class DashboardResponse(BaseModel):
    total_documents: int
    documents_by_status: Dict[str, int]
    total_chunks: int
    total_briefs: int
    recent_documents: List[DocumentInfo]
    recent_briefs: List[Brief]


class HealthResponse(BaseModel):
    status: str
    total_documents: int
    total_vectors: int
    llm_available: bool
