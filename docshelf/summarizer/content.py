"""Resolve the text a summary is built from."""
import io
import logging
from typing import Optional

import httpx
from docx import Document
from pypdf import PdfReader

logger = logging.getLogger(__name__)

_TEXTUAL_TYPES = ("application/json", "application/xml", "application/javascript", "application/x-yaml")
_PDF_TYPE = "application/pdf"
_DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def placeholder_text(name: str, file_type: Optional[str]) -> str:
    return f"Document: {name}\nType: {file_type or 'unknown'}"


def _is_textual(content_type: str) -> bool:
    return content_type.startswith("text/") or content_type in _TEXTUAL_TYPES or content_type.endswith("+xml")


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    parts = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            parts.append(page_text)
    return "\n".join(parts)


def extract_text_from_docx_bytes(docx_bytes: bytes) -> str:
    doc = Document(io.BytesIO(docx_bytes))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


async def fetch_source_text(
    url: Optional[str],
    name: str,
    file_type: Optional[str],
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Download `url` and turn it into text.

    Textual responses are used verbatim; PDF and DOCX get a best-effort
    extraction. Anything else, any failure, or an empty result yields a
    placeholder built from the file name and declared type.
    """
    fallback = placeholder_text(name, file_type)
    if not url:
        return fallback

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch {url} for summarization: {e}")
        return fallback

    content_type = resp.headers.get("content-type", "").split(";")[0].strip().lower()
    try:
        if _is_textual(content_type):
            text = resp.text
        elif content_type == _PDF_TYPE or name.lower().endswith(".pdf"):
            text = extract_text_from_pdf_bytes(resp.content)
        elif content_type == _DOCX_TYPE or name.lower().endswith(".docx"):
            text = extract_text_from_docx_bytes(resp.content)
        else:
            logger.info(f"No text extraction for content-type {content_type!r}; using placeholder")
            return fallback
    except Exception as e:
        logger.warning(f"Text extraction failed for {name}: {e}")
        return fallback

    if not text or not text.strip():
        return fallback
    return text
