"""Role-aware file listing across buckets, merged with document metadata."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

from docshelf.auth.access import buckets_for, is_visible
from docshelf.config import Settings, settings as default_settings
from docshelf.models.schemas import DocumentRecord, ListedFile, Requester, StorageObject
from docshelf.storage.metadata import MetadataStore
from docshelf.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _to_datetime(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Normalize ISO strings / naive datetimes to aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable timestamp {value!r}; treating as missing")
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _recency_key(item: ListedFile) -> float:
    return (item.created_at or _EPOCH).timestamp()


def _merge(bucket: str, obj: StorageObject, doc: Optional[DocumentRecord], url: str, url_kind: str) -> ListedFile:
    """Storage fields first, then whatever the document row declares on top."""
    merged = ListedFile(
        file_name=obj.name,
        path=obj.name,
        bucket_name=bucket,
        url=url,
        url_kind=url_kind,
        created_at=_to_datetime(obj.created_at),
        size=obj.size,
    )
    if doc is None:
        return merged

    merged.id = doc.id
    merged.file_name = doc.file_name or obj.name
    merged.created_at = _to_datetime(doc.created_at) or merged.created_at
    if doc.size is not None:
        merged.size = doc.size
    merged.file_type = doc.file_type or "unknown"
    merged.user_id = doc.user_id
    merged.is_deleted = doc.is_deleted
    merged.deleted_at = doc.deleted_at
    merged.summary = doc.summary
    merged.summary_source = doc.summary_source
    merged.summary_model = doc.summary_model
    merged.summary_generated_at = doc.summary_generated_at
    return merged


def _list_bucket(
    store: ObjectStore,
    bucket: str,
    docs_by_key: Dict[Tuple[str, str], DocumentRecord],
    cfg: Settings,
) -> List[ListedFile]:
    """List one bucket and resolve a URL per object. Runs in a worker thread."""
    results: List[ListedFile] = []
    for obj in store.list_objects(bucket):
        if bucket == cfg.default_bucket:
            url, kind = store.get_public_url(bucket, obj.name), "public"
        else:
            try:
                url = store.create_signed_url(bucket, obj.name, cfg.signed_url_ttl_seconds)
                kind = "signed"
            except Exception as e:
                logger.warning(f"Skipping {bucket}/{obj.name}: signed URL failed: {e}")
                continue
        results.append(_merge(bucket, obj, docs_by_key.get((bucket, obj.name)), url, kind))
    return results


def _index_documents(metadata: MetadataStore) -> Dict[Tuple[str, str], DocumentRecord]:
    try:
        rows = metadata.query_documents()
    except Exception as e:
        logger.error(f"Failed to load document metadata; listing storage only: {e}")
        return {}
    return {(d.bucket_name, d.path): d for d in rows}


async def list_files(
    requester: Requester,
    store: ObjectStore,
    metadata: MetadataStore,
    cfg: Settings = default_settings,
) -> List[ListedFile]:
    """
    Build the file listing for `requester`.

    Pipeline:
    1. Pick the buckets this role may browse
    2. Load all document rows once, keyed by (bucket, path)
    3. List every bucket concurrently; a failing bucket is logged and skipped
    4. Merge storage entries with their document rows and resolve URLs
    5. Re-check each entry against the access policy
    6. Newest first; entries without a timestamp go last
    """
    buckets = buckets_for(requester)
    docs_by_key = await asyncio.to_thread(_index_documents, metadata)

    listings = await asyncio.gather(
        *(asyncio.to_thread(_list_bucket, store, bucket, docs_by_key, cfg) for bucket in buckets),
        return_exceptions=True,
    )

    files: List[ListedFile] = []
    for bucket, listing in zip(buckets, listings):
        if isinstance(listing, BaseException):
            logger.error(f"Failed to list bucket {bucket}: {listing}")
            continue
        files.extend(listing)

    visible = [f for f in files if is_visible(requester, f)]
    dropped = len(files) - len(visible)
    if dropped:
        logger.info(f"Access policy hid {dropped} of {len(files)} entries for role={requester.role}")

    visible.sort(key=_recency_key, reverse=True)
    return visible
