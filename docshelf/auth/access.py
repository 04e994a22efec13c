# docshelf/auth/access.py
from typing import List, Optional, Protocol

from docshelf.config import settings
from docshelf.models.schemas import Requester


class _Owned(Protocol):
    bucket_name: str
    user_id: Optional[str]


def user_bucket_name(user_id: str) -> str:
    return f"user-{user_id}"


def is_visible(requester: Requester, document: _Owned) -> bool:
    """
    Decide whether `requester` may see `document`.

    - admin: everything
    - guest: only the shared default bucket
    - user: the shared default bucket, their own documents, and anything
      in their own bucket
    Unknown roles see nothing.
    """
    match requester.role:
        case "admin":
            return True
        case "guest":
            return document.bucket_name == settings.default_bucket
        case "user":
            if not requester.id:
                return False
            if document.user_id == requester.id:
                return True
            return document.bucket_name in (settings.default_bucket, user_bucket_name(requester.id))
        case _:
            return False


def buckets_for(requester: Requester) -> List[str]:
    """Buckets whose listings are fetched for this requester."""
    buckets = [settings.default_bucket]
    if requester.role == "user" and requester.id:
        buckets.append(user_bucket_name(requester.id))
    return buckets


def upload_bucket_for(requester: Requester) -> str:
    """Registered users upload into their own bucket; guests and admins use the shared one."""
    if requester.role == "user" and requester.id:
        return user_bucket_name(requester.id)
    return settings.default_bucket
