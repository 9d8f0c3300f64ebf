"""
Dependency wiring for the FastAPI app.

Store handles are opened once at process start, kept on ``app.state`` and
handed to routes through these dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from teams_backend.config import Settings
from teams_backend.db import DocumentStore, InMemoryDocumentStore, MongoDocumentStore
from teams_backend.errors import StoreError
from teams_backend.storage import (
    CosMediaStore,
    GridFsMediaStore,
    InMemoryMediaStore,
    MediaStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    """Connection object holding the document store and the media store."""

    documents: DocumentStore
    media: MediaStore

    @classmethod
    def in_memory(cls, chunk_size: int | None = None) -> "Backends":
        media = InMemoryMediaStore(chunk_size) if chunk_size else InMemoryMediaStore()
        return cls(documents=InMemoryDocumentStore(), media=media)

    def close(self) -> None:
        self.documents.close()


def connect_backends(settings: Settings) -> Backends:
    """
    Open the stores described by ``settings``. A document store that cannot
    be reached at startup is fatal for the process.
    """
    if settings.use_in_memory_backends:
        logger.info("Using in-memory document and media stores")
        return Backends.in_memory(settings.media_chunk_size)

    documents = MongoDocumentStore(
        settings.mongo_url,
        settings.mongo_db_name,
        timeout_ms=settings.mongo_timeout_ms,
    )
    try:
        documents.ping()
    except StoreError as exc:
        logger.error("Error connecting to MongoDB: %s", exc.cause)
        documents.close()
        raise SystemExit(1) from exc
    logger.info("Connected to MongoDB database %s", settings.mongo_db_name)

    if settings.cos_bucket:
        media: MediaStore = CosMediaStore(
            bucket=settings.cos_bucket,
            region=settings.cos_region or "",
            endpoint=settings.cos_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            chunk_size=settings.media_chunk_size,
        )
    else:
        media = GridFsMediaStore(
            documents.db,
            bucket_name=settings.media_bucket,
            chunk_size=settings.media_chunk_size,
        )
    return Backends(documents=documents, media=media)


def get_backends(request: Request) -> Backends:
    return request.app.state.backends


def get_document_store(request: Request) -> DocumentStore:
    return get_backends(request).documents


def get_media_store(request: Request) -> MediaStore:
    return get_backends(request).media


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
