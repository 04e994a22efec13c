# docshelf/api/routes/storage.py
from fastapi import APIRouter, Depends, HTTPException

import logging

from docshelf.config import settings
from docshelf.deps import get_object_store
from docshelf.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/init", status_code=200)
def init_default_bucket(store: ObjectStore = Depends(get_object_store)):
    """Make sure the shared bucket exists and is publicly readable."""
    bucket = settings.default_bucket
    try:
        created = store.ensure_bucket(bucket, public=True)
    except Exception as e:
        logger.error(f"Failed to initialise bucket {bucket}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create bucket: {e}")

    message = f'Bucket "{bucket}" created successfully' if created else f'Bucket "{bucket}" already exists'
    return {"status": "success", "message": message, "bucket": bucket, "created": created}


@router.get("/diagnose", status_code=200)
def diagnose_storage(store: ObjectStore = Depends(get_object_store)):
    """Probe bucket listing and direct access to the shared bucket."""
    list_test = {"success": False, "data": None, "error": None}
    try:
        list_test["data"] = store.list_buckets()
        list_test["success"] = True
    except Exception as e:
        list_test["error"] = str(e)

    default_test = {"success": False, "file_count": 0, "error": None}
    try:
        default_test["file_count"] = len(store.list_objects(settings.default_bucket))
        default_test["success"] = True
    except Exception as e:
        default_test["error"] = str(e)

    logger.info(f"Storage diagnose: list_buckets={list_test['success']} default={default_test['success']}")
    return {
        "status": "diagnostic",
        "list_buckets": list_test,
        "default_bucket_access": default_test,
        "recommendations": {
            "list_buckets": "OK" if list_test["success"] else "Credentials may lack permission to list buckets",
            "default_bucket": "OK" if default_test["success"] else f'Cannot access bucket "{settings.default_bucket}"; call /storage/init',
        },
    }
