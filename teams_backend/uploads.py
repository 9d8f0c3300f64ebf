"""
Upload pipeline: persists an incoming multipart file part to the media store
before the route handler runs and hands the generated filename to it.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional
from uuid import uuid4

from fastapi import Depends, File, UploadFile

from teams_backend.config import Settings
from teams_backend.dependencies import get_app_settings, get_media_store
from teams_backend.storage import MediaStore

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "postImage"


def generate_filename(original: Optional[str], now: Optional[float] = None) -> str:
    """
    Build ``<epoch-millis>_<token>_<name>``. The random token keeps two
    uploads of the same name within one millisecond apart.
    """
    millis = int((time.time() if now is None else now) * 1000)
    # Browsers on Windows may send the full client path.
    name = os.path.basename((original or "").replace("\\", "/")).strip() or "upload"
    return f"{millis}_{uuid4().hex[:8]}_{name}"


def store_upload(media: MediaStore, upload: UploadFile, *, bucket: str) -> str:
    filename = generate_filename(upload.filename)
    stored = media.put(
        filename,
        upload.file,
        content_type=upload.content_type,
        metadata={
            "mimetype": upload.content_type,
            "originalname": upload.filename,
            "bucket": bucket,
        },
    )
    logger.info("Stored upload %s (%d bytes) in %s", filename, stored.length, bucket)
    return filename


def stored_post_image(
    post_image: UploadFile | None = File(None, alias=UPLOAD_FIELD),
    media: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_app_settings),
) -> Optional[str]:
    """Dependency yielding the stored filename, or None when no file was sent."""
    if post_image is None or not post_image.filename:
        return None
    return store_upload(media, post_image, bucket=settings.media_bucket)
