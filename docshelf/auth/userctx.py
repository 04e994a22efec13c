# docshelf/auth/userctx.py
from fastapi import Depends, HTTPException, status

from docshelf.auth.jwt import bearer, decode_token
from docshelf.models.schemas import GUEST, Requester

async def current_requester(auth=Depends(bearer)) -> Requester:
    """Resolve the bearer token into a Requester; no token means guest."""
    if auth is None:
        return GUEST

    claims = decode_token(auth)
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing 'sub' in token")

    role = claims.get("role") or "guest"
    if role == "guest":
        return GUEST
    return Requester(id=sub, role=role, email=claims.get("email"))
