"""Document, user and action-log records in MongoDB."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from docshelf.db.mongo import db as lazy_db
from docshelf.models.schemas import DocumentRecord

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


class MetadataStore:
    def __init__(self, database=None):
        self._database = database

    @property
    def db(self):
        # Resolved lazily so tests can swap the database underneath
        return self._database if self._database is not None else lazy_db

    # ---------------------------
    # Documents
    # ---------------------------

    def query_documents(self) -> List[DocumentRecord]:
        """All document rows; callers filter in memory."""
        return [DocumentRecord(**row) for row in self.db.documents.find({})]

    def find_document(self, path: str, bucket: Optional[str] = None) -> Optional[DocumentRecord]:
        query: Dict[str, Any] = {"path": path}
        if bucket:
            query["bucket_name"] = bucket
        row = self.db.documents.find_one(query)
        return DocumentRecord(**row) if row else None

    def find_documents(self, path: str, bucket: Optional[str] = None) -> List[DocumentRecord]:
        """Every row stored under `path`; the same path may exist in several buckets."""
        query: Dict[str, Any] = {"path": path}
        if bucket:
            query["bucket_name"] = bucket
        return [DocumentRecord(**row) for row in self.db.documents.find(query).sort("bucket_name", 1)]

    def insert_document(
        self,
        *,
        file_name: str,
        path: str,
        bucket_name: str,
        user_id: Optional[str],
        file_type: Optional[str],
        size: int,
        checksum: Optional[str] = None,
    ) -> DocumentRecord:
        doc = {
            "_id": _new_id("d"),
            "file_name": file_name,
            "path": path,
            "bucket_name": bucket_name,
            "user_id": user_id,
            "file_type": file_type,
            "size": size,
            "checksum": checksum,
            "created_at": _now_iso(),
            "is_deleted": False,
            "deleted_at": None,
            "summary": None,
            "summary_source": None,
            "summary_model": None,
            "summary_generated_at": None,
        }
        self.db.documents.insert_one(doc)
        return DocumentRecord(**doc)

    def soft_delete(self, path: str, bucket: Optional[str] = None) -> int:
        query: Dict[str, Any] = {"path": path}
        if bucket:
            query["bucket_name"] = bucket
        res = self.db.documents.update_many(
            query,
            {"$set": {"is_deleted": True, "deleted_at": _now_iso()}},
        )
        return int(res.modified_count or 0)

    def update_document_summary(
        self,
        bucket: str,
        path: str,
        summary: str,
        source: str,
        model: str,
        timestamp: str,
    ) -> int:
        """Write the summary onto the single row keyed by (bucket, path)."""
        res = self.db.documents.update_one(
            {"bucket_name": bucket, "path": path},
            {"$set": {
                "summary": summary,
                "summary_source": source,
                "summary_model": model,
                "summary_generated_at": timestamp,
            }},
        )
        return int(res.matched_count or 0)

    # ---------------------------
    # Users
    # ---------------------------

    def find_user_by_email(self, email: str, active_only: bool = True) -> Optional[Dict[str, Any]]:
        query: Dict[str, Any] = {"email": email}
        if active_only:
            query["is_active"] = True
        return self.db.users.find_one(query)

    def find_user_by_email_or_username(self, email: str, username: str) -> Optional[Dict[str, Any]]:
        return self.db.users.find_one({"$or": [{"email": email}, {"username": username}]})

    def create_user(self, *, email: str, username: str, password_hash: str, role: str = "user") -> Dict[str, Any]:
        user = {
            "_id": str(uuid.uuid4()),
            "email": email,
            "username": username,
            "display_name": username,
            "password_hash": password_hash,
            "role": role,
            "is_active": True,
            "created_at": _now_iso(),
        }
        self.db.users.insert_one(user)
        return user

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.db.users.find_one({"_id": user_id}, {"password_hash": 0})

    # ---------------------------
    # Action log
    # ---------------------------

    def log_action(
        self,
        *,
        user_id: Optional[str],
        action_type: str,
        ip_address: str,
        user_agent: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        log_id = _new_id("l")
        self.db.logs.insert_one({
            "_id": log_id,
            "user_id": user_id,
            "action_type": action_type,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "details": details,
            "ts": _now_iso(),
        })
        return log_id
