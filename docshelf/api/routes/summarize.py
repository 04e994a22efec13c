# docshelf/api/routes/summarize.py
from datetime import datetime, timezone
from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Optional

import logging

from docshelf.auth.access import is_visible
from docshelf.auth.userctx import current_requester
from docshelf.deps import get_metadata_store
from docshelf.models.schemas import DocumentRecord, Requester, SummarizeRequest
from docshelf.storage.metadata import MetadataStore
from docshelf.summarizer.providers import ProviderError
from docshelf.summarizer.summarizer import DocumentSummarizer, get_summarizer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/summarize", tags=["summarize"])


def _summary_target(
    requester: Requester,
    metadata: MetadataStore,
    path: str,
    bucket: Optional[str],
) -> Optional[DocumentRecord]:
    """
    The one row a summary for `path` is saved onto: the first row under that
    path the requester can see. 403 when rows exist but none is visible.
    """
    try:
        rows = metadata.find_documents(path, bucket)
    except Exception as e:
        logger.error(f"Failed to look up document {path}; summary will not be saved: {e}")
        return None

    visible = [row for row in rows if is_visible(requester, row)]
    if rows and not visible:
        raise HTTPException(status_code=403, detail="Access denied: file is not visible to you")
    return visible[0] if visible else None


@router.post("", status_code=200)
async def summarize_document(
    request_body: SummarizeRequest = Body(...),
    requester: Requester = Depends(current_requester),
    summarizer: DocumentSummarizer = Depends(get_summarizer),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    """
    Summarize one document and, when `path` is given, save the summary onto
    its document row. Always answers with a summary: if no hosted provider
    works, the local extractive summary is used.
    """
    target = None
    if request_body.path:
        target = _summary_target(requester, metadata, request_body.path, request_body.bucket_name)

    result = await summarizer.summarize(request_body)
    generated_at = datetime.now(timezone.utc).isoformat()

    persisted = False
    if target is not None:
        try:
            matched = metadata.update_document_summary(
                target.bucket_name,
                target.path,
                result.summary,
                result.source,
                result.model,
                generated_at,
            )
            persisted = matched > 0
        except Exception as e:
            logger.error(f"Failed to save summary for {target.bucket_name}/{target.path}: {e}")
    elif request_body.path:
        logger.info(f"No document row for {request_body.path}; summary not saved")

    return {
        "success": True,
        "file_name": request_body.name,
        "summary": result.summary,
        "source": result.source,
        "model": result.model,
        "generated_at": generated_at,
        "persisted": persisted,
    }


@router.get("/providers", status_code=200)
def list_providers(summarizer: DocumentSummarizer = Depends(get_summarizer)):
    """Hosted providers in the order they are tried."""
    return {
        "providers": [p.describe() for p in summarizer.providers],
        "fallback": {"name": "local", "model": "local-extractive"},
    }


@router.post("/providers/{name}/check", status_code=200)
async def check_provider(name: str, summarizer: DocumentSummarizer = Depends(get_summarizer)):
    """Send one tiny prompt to a single provider and report what happened."""
    provider = summarizer.get_provider(name)
    if provider is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider '{name}'")
    if not provider.configured:
        raise HTTPException(status_code=400, detail=f"{name} is not configured")

    try:
        text = await provider.complete("Please summarize: Hello world.", 200)
    except ProviderError as e:
        return {"success": False, "provider": name, "model": provider.model, "error": str(e)}
    return {"success": True, "provider": name, "model": provider.model, "response": text}
