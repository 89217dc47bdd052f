"""Upload storage on the local filesystem (uuid file names under the upload directory)."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from .config import get_settings
from .constants import ALLOWED_MIME_TYPES
from .errors import PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

# clients that don't know the type send one of these
_GENERIC_CONTENT_TYPES = ("", "application/octet-stream")
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredFile:
    name: str            # relative to the upload directory
    original_name: str
    size: int
    content_type: str | None


def upload_root() -> Path:
    root = get_settings().upload_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def validate_upload(filename: str | None, content_type: str | None) -> str:
    """Return the lower-case extension or raise ValidationError."""
    settings = get_settings()
    if not filename:
        raise ValidationError("No file uploaded")

    ext = Path(filename).suffix.lower()
    if ext not in settings.allowed_extensions:
        raise ValidationError("Invalid file type. Only JPEG, PNG, PDF, DOC, and DOCX files are allowed.")

    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype not in _GENERIC_CONTENT_TYPES and ctype not in ALLOWED_MIME_TYPES:
        raise ValidationError("Invalid file type. Only JPEG, PNG, PDF, DOC, and DOCX files are allowed.")
    return ext


async def save_upload(upload: UploadFile) -> StoredFile:
    """Stream the upload to disk in chunks, giving up as soon as it exceeds the size limit."""
    settings = get_settings()
    ext = validate_upload(upload.filename, upload.content_type)

    name = f"{uuid.uuid4().hex}{ext}"
    path = upload_root() / name
    size = 0
    async with aiofiles.open(path, "wb") as out_file:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > settings.max_upload_bytes:
                break
            await out_file.write(chunk)

    if size > settings.max_upload_bytes:
        path.unlink(missing_ok=True)
        raise PayloadTooLargeError(
            f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB."
        )
    if size == 0:
        path.unlink(missing_ok=True)
        raise ValidationError("Uploaded file is empty")

    logger.info("stored upload %s (%d bytes) as %s", upload.filename, size, name)
    return StoredFile(name=name, original_name=upload.filename, size=size, content_type=upload.content_type)


def resolve(name: str) -> Path:
    path = (upload_root() / name).resolve()
    if upload_root().resolve() not in path.parents:
        raise ValidationError("Invalid file path")
    return path


def delete_file(name: str) -> bool:
    try:
        path = resolve(name)
    except ValidationError:
        logger.warning("refusing to delete file outside upload dir: %s", name)
        return False
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError:
        logger.exception("could not delete stored file %s", name)
        return False
    return True
