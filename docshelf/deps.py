from typing import Optional
from fastapi import HTTPException

from docshelf.config import settings
from docshelf.storage.metadata import MetadataStore
from docshelf.storage.object_store import ObjectStore, StorageNotConfigured

# Singletons
_object_store = None
_metadata_store = None

def get_object_store() -> ObjectStore:
    """Return a singleton object store; 503 when storage isn't configured."""
    global _object_store
    if _object_store is None:
        try:
            _object_store = ObjectStore.from_settings(settings)
        except StorageNotConfigured:
            raise HTTPException(status_code=503, detail="Object storage is not configured")
    return _object_store

def get_optional_object_store() -> Optional[ObjectStore]:
    """Like get_object_store, but None instead of 503 for best-effort callers."""
    try:
        return get_object_store()
    except HTTPException:
        return None

def get_metadata_store() -> MetadataStore:
    global _metadata_store
    if _metadata_store is None:
        _metadata_store = MetadataStore()
    return _metadata_store
