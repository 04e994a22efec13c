"""Bucketed object storage on MinIO (or any S3-compatible endpoint)."""
import io
import json
import logging
from datetime import timedelta
from typing import Iterable, List, Optional
from urllib.parse import quote

from minio import Minio

from docshelf.config import Settings
from docshelf.models.schemas import StorageObject

logger = logging.getLogger(__name__)


class StorageNotConfigured(RuntimeError):
    """Raised when no object storage endpoint is configured."""


def _public_read_policy(bucket: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"AWS": ["*"]},
            "Action": ["s3:GetObject"],
            "Resource": [f"arn:aws:s3:::{bucket}/*"],
        }],
    })


class ObjectStore:
    """
    Thin wrapper over the MinIO client exposing just what the app needs:
    listing, public/signed URLs, upload/remove and bucket housekeeping.
    """

    def __init__(self, client: Minio, public_base_url: str):
        self.client = client
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStore":
        if not settings.minio_endpoint:
            raise StorageNotConfigured("MINIO_ENDPOINT is not set")
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        scheme = "https" if settings.minio_secure else "http"
        public_base = settings.storage_public_url or f"{scheme}://{settings.minio_endpoint}"
        return cls(client, public_base)

    # ---------------------------
    # Reads
    # ---------------------------

    def list_objects(self, bucket: str) -> List[StorageObject]:
        objects = []
        for obj in self.client.list_objects(bucket_name=bucket, recursive=True):
            if obj.is_dir:
                continue
            objects.append(StorageObject(name=obj.object_name, created_at=obj.last_modified, size=obj.size))
        return objects

    def get_public_url(self, bucket: str, name: str) -> str:
        return f"{self.public_base_url}/{bucket}/{quote(name)}"

    def create_signed_url(self, bucket: str, name: str, ttl_seconds: int) -> str:
        return self.client.presigned_get_object(
            bucket_name=bucket,
            object_name=name,
            expires=timedelta(seconds=ttl_seconds),
        )

    def list_buckets(self) -> List[dict]:
        return [
            {"name": b.name, "created_at": b.creation_date.isoformat() if b.creation_date else None}
            for b in self.client.list_buckets()
        ]

    # ---------------------------
    # Writes
    # ---------------------------

    def ensure_bucket(self, bucket: str, public: bool = False) -> bool:
        """Create `bucket` if missing. Returns True when it was created."""
        if self.client.bucket_exists(bucket_name=bucket):
            return False
        self.client.make_bucket(bucket_name=bucket)
        if public:
            self.client.set_bucket_policy(bucket_name=bucket, policy=_public_read_policy(bucket))
        logger.info(f"Created bucket {bucket} (public={public})")
        return True

    def upload(self, bucket: str, name: str, data: bytes, content_type: Optional[str] = None) -> str:
        self.client.put_object(
            bucket_name=bucket,
            object_name=name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
        )
        return name

    def remove(self, bucket: str, names: Iterable[str]) -> None:
        for name in names:
            self.client.remove_object(bucket_name=bucket, object_name=name)
