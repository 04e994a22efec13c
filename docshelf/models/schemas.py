from datetime import datetime
from typing import Optional, Literal, Dict, Any

from pydantic import BaseModel, Field

Role = Literal["user", "admin", "guest"]
UrlKind = Literal["public", "signed"]

GUEST_ID = "a14ef943-e5d3-4a17-b4cb-293181ec1d7e"


class Requester(BaseModel):
    """The identity a request is made on behalf of."""
    id: Optional[str] = None
    role: str = "guest"
    email: Optional[str] = None


GUEST = Requester(id=GUEST_ID, role="guest", email="guest@example.com")


class DocumentRecord(BaseModel):
    """Metadata row for one stored object, keyed by (bucket_name, path)."""
    id: Optional[str] = Field(None, alias="_id")
    file_name: str
    path: str
    bucket_name: str
    user_id: Optional[str] = None
    file_type: Optional[str] = None
    size: Optional[int] = None
    checksum: Optional[str] = None
    created_at: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[str] = None
    summary: Optional[str] = None
    summary_source: Optional[str] = None
    summary_model: Optional[str] = None
    summary_generated_at: Optional[str] = None

    class Config:
        populate_by_name = True


class UserRecord(BaseModel):
    id: str = Field(..., alias="_id")
    email: str
    username: str
    display_name: Optional[str] = None
    role: Role = "user"
    is_active: bool = True

    class Config:
        populate_by_name = True


class StorageObject(BaseModel):
    """One entry of an object-store bucket listing."""
    name: str
    created_at: Optional[datetime] = None
    size: Optional[int] = None


class ListedFile(BaseModel):
    """A storage object merged with its document record; recomputed per request."""
    id: Optional[str] = None
    file_name: str
    path: str
    bucket_name: str
    url: str
    url_kind: UrlKind
    created_at: Optional[datetime] = None
    size: Optional[int] = None
    file_type: str = "unknown"
    user_id: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[str] = None
    summary: Optional[str] = None
    summary_source: Optional[str] = None
    summary_model: Optional[str] = None
    summary_generated_at: Optional[str] = None


class SummarizeRequest(BaseModel):
    url: Optional[str] = Field(None, description="Where the document content can be fetched")
    name: str = Field(..., description="File name, used for the placeholder text")
    type: Optional[str] = Field(None, description="Declared file type (MIME or extension)")
    inline_text: Optional[str] = Field(None, description="Text to summarize instead of fetching url")
    path: Optional[str] = Field(None, description="Document path to persist the summary onto")
    bucket_name: Optional[str] = None


class SummaryResult(BaseModel):
    summary: str
    source: str
    model: str


class LoginRequest(BaseModel):
    email: str
    password: str
    username: Optional[str] = None
    is_registering: bool = False


class ActionLogRequest(BaseModel):
    user_id: Optional[str] = None
    action_type: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class DeleteFileRequest(BaseModel):
    path: str
    bucket: Optional[str] = None
