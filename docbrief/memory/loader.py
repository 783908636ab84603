# docbrief/memory/loader.py

"""
Text extraction for uploaded files.

Pipeline:
loader → chunker → embedder → vector_store

Supports:
- PDF (pypdf)
- DOCX (python-docx)
- Plain text and markdown
"""

import logging
import os
from typing import Optional, Tuple

from docx import Document as DocxDocument
from pypdf import PdfReader

from docbrief.config import MAX_DOCUMENT_CHARACTERS


logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".md")

_DOCX_MIME = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


# ============================================================
# SAFETY: CHARACTER LIMIT
# ============================================================

def enforce_character_limit(text: str) -> str:

    if not text:
        return ""

    if len(text) > MAX_DOCUMENT_CHARACTERS:

        logger.warning(
            "Text exceeds max character limit, truncating",
            extra={
                "original_length": len(text),
                "max_allowed": MAX_DOCUMENT_CHARACTERS,
            },
        )

        return text[:MAX_DOCUMENT_CHARACTERS]

    return text


# ============================================================
# PLAIN TEXT
# ============================================================

def decode_bytes(raw_bytes: bytes) -> Tuple[str, str]:
    """Decode with UTF-8 BOM, then UTF-8, then Latin-1."""

    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        return raw_bytes.decode("utf-8-sig"), "utf-8-sig"

    try:
        return raw_bytes.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        # latin-1 maps every byte, so this cannot fail
        return raw_bytes.decode("latin-1"), "latin-1"


def load_plain_text(file_path: str) -> str:

    with open(file_path, "rb") as f:
        text, encoding = decode_bytes(f.read())

    logger.debug(
        "Plain text decoded",
        extra={"path": file_path, "encoding": encoding},
    )

    return enforce_character_limit(text)


# ============================================================
# PDF
# ============================================================

def load_pdf_text(file_path: str) -> str:

    reader = PdfReader(file_path)

    parts = []

    for page in reader.pages:

        text = page.extract_text()

        if text:
            parts.append(text)

    return enforce_character_limit("\n".join(parts))


# ============================================================
# DOCX
# ============================================================

def load_docx_text(file_path: str) -> str:

    document = DocxDocument(file_path)

    parts = [p.text for p in document.paragraphs if p.text.strip()]

    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    return enforce_character_limit("\n".join(parts))


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def detect_kind(file_path: str, file_type: Optional[str] = None) -> str:

    extension = os.path.splitext(file_path)[1].lower()

    if extension == ".pdf":
        return "pdf"

    if extension == ".docx":
        return "docx"

    if extension in TEXT_EXTENSIONS:
        return "text"

    mime = (file_type or "").lower()

    if mime == "application/pdf":
        return "pdf"

    if mime == _DOCX_MIME:
        return "docx"

    if mime.startswith("text/"):
        return "text"

    raise ValueError(f"Unsupported file type: {extension or mime or 'unknown'}")


def load_text(file_path: str, file_type: Optional[str] = None) -> str:

    kind = detect_kind(file_path, file_type)

    if kind == "pdf":
        return load_pdf_text(file_path)

    if kind == "docx":
        return load_docx_text(file_path)

    return load_plain_text(file_path)
