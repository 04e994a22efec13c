# docshelf/auth/routes.py
import hashlib
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pymongo.errors import DuplicateKeyError

from docshelf.auth.access import user_bucket_name
from docshelf.auth.jwt import mint_token
from docshelf.auth.userctx import current_requester
from docshelf.deps import get_metadata_store, get_optional_object_store
from docshelf.models.schemas import GUEST, ActionLogRequest, LoginRequest, Requester, UserRecord
from docshelf.storage.metadata import MetadataStore
from docshelf.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

def hash_password(password: str) -> str:
    """md5(password + salt). Toy-grade, kept compatible with existing user rows."""
    return hashlib.md5((password + "default-salt").encode("utf-8")).hexdigest()

def _public_user(user: dict) -> dict:
    return UserRecord(**user).model_dump(exclude={"is_active"})

@router.post("/login", status_code=200)
def login(
    request_body: LoginRequest = Body(...),
    metadata: MetadataStore = Depends(get_metadata_store),
    store: Optional[ObjectStore] = Depends(get_optional_object_store),
):
    """
    Log in with email + password, or register when `is_registering` is set.
    Registration also creates the user's private bucket (best effort).
    """
    email, password = request_body.email, request_body.password
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    if request_body.is_registering:
        username = request_body.username
        if not username:
            raise HTTPException(status_code=400, detail="Username is required for registration")

        if metadata.find_user_by_email_or_username(email, username):
            raise HTTPException(status_code=409, detail="User with this email or username already exists")

        try:
            user = metadata.create_user(email=email, username=username, password_hash=hash_password(password))
        except DuplicateKeyError:
            raise HTTPException(status_code=409, detail="User with this email or username already exists")

        bucket = user_bucket_name(user["_id"])
        if store is None:
            logger.warning(f"Object storage not configured; bucket {bucket} not created")
        else:
            try:
                store.ensure_bucket(bucket, public=False)
            except Exception as e:
                logger.warning(f"Failed to create user bucket {bucket} (might already exist): {e}")
    else:
        user = metadata.find_user_by_email(email)
        if not user or hash_password(password) != user.get("password_hash"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    return {
        "success": True,
        "user": _public_user(user),
        "access_token": mint_token(user["_id"], user["role"], user["email"]),
        "token_type": "bearer",
    }

@router.post("/guest", status_code=200)
def guest_login():
    """Continue as the shared guest identity (no account needed)."""
    return {
        "success": True,
        "user": {
            "id": GUEST.id,
            "email": GUEST.email,
            "username": "guest",
            "display_name": "Guest User",
            "role": "guest",
        },
        "access_token": mint_token(GUEST.id, "guest", GUEST.email),
        "token_type": "bearer",
    }

@router.post("/log", status_code=200)
def log_action(
    request: Request,
    request_body: ActionLogRequest = Body(...),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    """Record a user action (login, logout, ...) with client ip and user agent."""
    if not request_body.action_type:
        raise HTTPException(status_code=400, detail="Action type is required")

    forwarded = request.headers.get("x-forwarded-for")
    client_ip = (
        request_body.ip_address
        or (forwarded.split(",")[0].strip() if forwarded else None)
        or (request.client.host if request.client else None)
        or "unknown"
    )
    user_agent = request_body.user_agent or request.headers.get("user-agent") or "unknown"

    try:
        log_id = metadata.log_action(
            user_id=request_body.user_id,
            action_type=request_body.action_type,
            ip_address=client_ip,
            user_agent=user_agent,
            details=request_body.details,
        )
    except Exception as e:
        logger.error(f"Error logging action {request_body.action_type}: {e}")
        raise HTTPException(status_code=500, detail="Failed to log action")

    return {"success": True, "log_id": log_id}

@router.get("/me", status_code=200)
def me(
    requester: Requester = Depends(current_requester),
    metadata: MetadataStore = Depends(get_metadata_store),
):
    if requester.role == "guest":
        return {"id": requester.id, "role": "guest", "username": "guest", "display_name": "Guest User"}
    doc = metadata.get_user(requester.id) or {}
    doc.pop("_id", None)
    return {**doc, "id": requester.id, "role": requester.role}
