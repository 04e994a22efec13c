import hashlib
import os
import time
from typing import Optional, Tuple

from fastapi import UploadFile

def sha256_of_bytes(data: bytes) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()

def object_name_for(filename: str, now_ms: Optional[int] = None) -> str:
    """Stored object name: '<epoch-ms>-<basename>'. Keeps uploads of the same name apart."""
    base = os.path.basename(filename or "").strip() or "unnamed"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{base}"

def read_upload(file: UploadFile, max_bytes: int) -> Tuple[bytes, bool]:
    """
    Read an UploadFile in 1 MiB chunks. Returns (data, too_large); stops
    reading as soon as the limit is crossed.
    """
    chunks = []
    size = 0
    file.file.seek(0)
    while True:
        chunk = file.file.read(1024 * 1024)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            return b"", True
        chunks.append(chunk)
    return b"".join(chunks), False
