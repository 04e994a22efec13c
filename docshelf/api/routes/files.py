# docshelf/api/routes/files.py
from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from typing import Optional

import logging

from docshelf.auth.access import is_visible, upload_bucket_for
from docshelf.auth.userctx import current_requester
from docshelf.config import settings
from docshelf.deps import get_metadata_store, get_object_store
from docshelf.models.schemas import DeleteFileRequest, DocumentRecord, Requester
from docshelf.services.aggregator import list_files
from docshelf.storage.metadata import MetadataStore
from docshelf.storage.object_store import ObjectStore
from docshelf.utils.storage import object_name_for, read_upload, sha256_of_bytes

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/files", tags=["files"])

# Private per-user buckets only take these kinds of files
USER_BUCKET_MIME_PREFIXES = ("image/", "application/pdf", "text/")


# ---------- helpers ----------
def _size_limit(bucket: str) -> int:
    if bucket == settings.default_bucket:
        return settings.default_bucket_size_limit
    return settings.user_bucket_size_limit


def _mime_allowed(bucket: str, mime: str) -> bool:
    if bucket == settings.default_bucket:
        return True
    return mime.startswith(USER_BUCKET_MIME_PREFIXES)


# ---------- list ----------
@router.get("", status_code=200)
async def list_visible_files(
    requester: Requester = Depends(current_requester),
    store: ObjectStore = Depends(get_object_store),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    """
    List every file the caller may see, newest first.

    Guests see the shared `default` bucket; users additionally see their own
    `user-<id>` bucket; admins get the shared bucket without the owner filter.
    Files in private buckets come with a 24h signed URL.
    """
    files = await list_files(requester, store, metadata)
    return {
        "success": True,
        "count": len(files),
        "files": [f.model_dump(mode="json") for f in files],
    }


# ---------- upload ----------
@router.post("/upload", status_code=201, summary="Upload a file")
def upload_file(
    file: UploadFile = File(..., description="File to upload"),
    requester: Requester = Depends(current_requester),
    store: ObjectStore = Depends(get_object_store),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    """
    Upload into the caller's bucket (`user-<id>` for users, `default`
    otherwise) and record a document row for it.
    """
    if not file or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    bucket = upload_bucket_for(requester)
    mime = file.content_type or "application/octet-stream"
    if not _mime_allowed(bucket, mime):
        raise HTTPException(status_code=415, detail=f"File type {mime} is not allowed in {bucket}")

    limit = _size_limit(bucket)
    data, too_large = read_upload(file, limit)
    if too_large:
        raise HTTPException(status_code=413, detail=f"File exceeds the {limit} byte limit of {bucket}")

    object_name = object_name_for(file.filename)
    try:
        store.ensure_bucket(bucket, public=(bucket == settings.default_bucket))
        store.upload(bucket, object_name, data, content_type=mime)
    except Exception as e:
        logger.exception(f"Upload of {file.filename} to {bucket} failed")
        raise HTTPException(status_code=500, detail=str(e))

    owner_id = None if requester.role == "guest" else requester.id
    doc: Optional[DocumentRecord] = None
    try:
        doc = metadata.insert_document(
            file_name=file.filename,
            path=object_name,
            bucket_name=bucket,
            user_id=owner_id,
            file_type=mime,
            size=len(data),
            checksum=sha256_of_bytes(data),
        )
    except Exception as e:
        logger.error(f"Stored {bucket}/{object_name} but failed to record metadata: {e}")

    url = None
    if bucket == settings.default_bucket:
        url = store.get_public_url(bucket, object_name)
    else:
        try:
            url = store.create_signed_url(bucket, object_name, settings.signed_url_ttl_seconds)
        except Exception as e:
            logger.warning(f"Could not sign URL for {bucket}/{object_name}: {e}")

    return {
        "success": True,
        "id": doc.id if doc else None,
        "file_name": file.filename,
        "path": object_name,
        "bucket_name": bucket,
        "size": len(data),
        "file_type": mime,
        "url": url,
    }


# ---------- delete ----------
@router.delete("", status_code=200)
def delete_file(
    request_body: DeleteFileRequest = Body(...),
    requester: Requester = Depends(current_requester),
    store: ObjectStore = Depends(get_object_store),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    """
    Soft delete the document row (is_deleted + deleted_at), then remove the
    stored object. The row stays so the file's history is kept.
    """
    if requester.role == "guest":
        raise HTTPException(status_code=403, detail="Guests cannot delete files")

    bucket = request_body.bucket or settings.default_bucket
    path = request_body.path

    doc = metadata.find_document(path, bucket)
    target = doc or DocumentRecord(file_name=path, path=path, bucket_name=bucket)
    if not is_visible(requester, target):
        raise HTTPException(status_code=403, detail="Access denied: file is not visible to you")

    try:
        metadata.soft_delete(path, bucket)
    except Exception as e:
        # Storage removal still goes ahead
        logger.warning(f"Failed to soft delete document row for {bucket}/{path}: {e}")

    try:
        store.remove(bucket, [path])
    except Exception as e:
        logger.error(f"Failed to remove {bucket}/{path} from storage: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "message": "File deleted successfully", "path": path, "bucket_name": bucket}
