# docbrief/export/exporter.py

import io
import json
import re
from typing import Dict, Tuple

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor


MEDIA_TYPES = {
    "markdown": "text/markdown; charset=utf-8",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "json": "application/json",
}

EXTENSIONS = {
    "markdown": "md",
    "docx": "docx",
    "json": "json",
}

_BULLET_PREFIXES = ("•", "- ", "* ")


def export_filename(title: str, export_format: str) -> str:

    slug = re.sub(r"[^A-Za-z0-9]+", "-", title).strip("-").lower() or "brief"

    return f"{slug}.{EXTENSIONS[export_format]}"


def _strip_bullet(line: str) -> Tuple[bool, str]:

    stripped = line.strip()

    for prefix in _BULLET_PREFIXES:
        if stripped.startswith(prefix):
            return True, stripped[len(prefix):].strip()

    return False, stripped


def _sources_line(brief: Dict) -> str:
    return ", ".join(brief.get("source_documents") or []) or "None"


# ============================================================
# MARKDOWN
# ============================================================

def to_markdown(brief: Dict) -> str:

    lines = [
        f"# {brief['title']}",
        "",
        f"*Type:* {brief.get('brief_type', '')}  ",
        f"*Sources:* {_sources_line(brief)}  ",
        f"*Updated:* {brief.get('updated_at', '')}",
        "",
    ]

    for card in brief.get("cards", []):

        lines.append(f"## {card['title']}")
        lines.append("")

        for raw in card.get("content", "").splitlines():

            is_bullet, text = _strip_bullet(raw)

            if not text:
                continue

            lines.append(f"- {text}" if is_bullet else text)

        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


# ============================================================
# DOCX
# ============================================================

def to_docx_bytes(brief: Dict) -> bytes:

    doc = Document()

    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    heading = doc.add_heading(brief["title"], level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER

    meta = doc.add_paragraph()
    meta.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = meta.add_run(
        f"{brief.get('brief_type', '')} · Sources: {_sources_line(brief)}"
    )
    run.italic = True
    run.font.size = Pt(9)
    run.font.color.rgb = RGBColor(100, 100, 100)

    for card in brief.get("cards", []):

        doc.add_heading(card["title"], level=1)

        for raw in card.get("content", "").splitlines():

            is_bullet, text = _strip_bullet(raw)

            if not text:
                continue

            if is_bullet:
                doc.add_paragraph(text, style="List Bullet")
            else:
                doc.add_paragraph(text)

    buffer = io.BytesIO()
    doc.save(buffer)

    return buffer.getvalue()


# ============================================================
# ENTRY POINT
# ============================================================

def export_brief(brief: Dict, export_format: str) -> Tuple[bytes, str, str]:
    """Returns (body, media_type, filename)."""

    if export_format not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {export_format}")

    if export_format == "markdown":
        body = to_markdown(brief).encode("utf-8")

    elif export_format == "docx":
        body = to_docx_bytes(brief)

    else:
        body = json.dumps(brief, indent=2).encode("utf-8")

    return body, MEDIA_TYPES[export_format], export_filename(brief["title"], export_format)
