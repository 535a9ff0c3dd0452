"""
Streaming upload storage shared by the data-file and document routers.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List

import aiofiles
from fastapi import HTTPException, UploadFile, status

from docsight.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB slices


@dataclass
class StoredUpload:
    file_name: str   # original display name
    file_path: str   # UUID-based path on disk
    file_ext: str    # lower-case, with dot
    file_size: int


def check_extension(file: UploadFile, supported: List[str]) -> str:
    """Return the lower-case extension of *file* or raise 400."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload must include a filename.",
        )

    file_ext = Path(file.filename).suffix.lower()
    if file_ext == ".doc" and ".docx" in supported:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Legacy .doc files are not supported. "
                "Please save the document as .docx and upload it again."
            ),
        )
    if file_ext not in supported:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported file type '{file_ext}'. "
                f"Accepted: {', '.join(supported)}"
            ),
        )
    return file_ext


async def save_upload(file: UploadFile, supported: List[str]) -> StoredUpload:
    """
    Stream *file* to UPLOAD_DIR while enforcing MAX_FILE_SIZE.

    Raises:
        HTTPException 400: missing filename or unsupported extension.
        HTTPException 413: file larger than MAX_FILE_SIZE.
    """
    file_ext = check_extension(file, supported)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    # Use a UUID-based name on disk to prevent collisions
    stored_name = f"{uuid.uuid4().hex}{file_ext}"
    file_path = os.path.join(settings.UPLOAD_DIR, stored_name)
    file_size = 0

    async with aiofiles.open(file_path, "wb") as out:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            file_size += len(chunk)
            if file_size > settings.MAX_FILE_SIZE:
                # Clean up partial file before raising
                await out.close()
                safe_remove(file_path)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=(
                        f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB "
                        "size limit."
                    ),
                )
            await out.write(chunk)

    logger.info(f"Saved {file.filename!r} → {file_path} ({file_size:,} bytes)")
    return StoredUpload(
        file_name=file.filename,
        file_path=file_path,
        file_ext=file_ext,
        file_size=file_size,
    )


def safe_remove(path: str) -> None:
    """Delete a file silently, logging warnings but never raising."""
    try:
        if path and os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning(f"Could not remove file {path!r}: {exc}")
