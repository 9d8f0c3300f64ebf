"""
Binary object storage for member photos.

GridFS is the primary backend; an S3-compatible (Tencent COS) backend and an
in-memory test double implement the same interface. Files are addressed by
their generated filename and read back as an iterator of chunks so large
files never have to sit in memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, Optional, Protocol

import boto3
import gridfs
from gridfs.errors import NoFile
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from teams_backend.errors import StoreError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_CHUNK_SIZE = 255 * 1024


@dataclass
class StoredFile:
    filename: str
    content_type: Optional[str]
    length: int
    metadata: dict = field(default_factory=dict)

    @property
    def media_type(self) -> str:
        return self.content_type or self.metadata.get("mimetype") or DEFAULT_CONTENT_TYPE


class MediaStore(Protocol):
    """Defines the operations the API needs from object storage."""

    def put(
        self,
        filename: str,
        source: BinaryIO,
        *,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> StoredFile:
        ...

    def stat(self, filename: str) -> Optional[StoredFile]:
        ...

    def iter_chunks(self, filename: str) -> Iterator[bytes]:
        ...


def _read_chunks(source: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return
        yield chunk


class InMemoryMediaStore:
    """Test double for object storage; keeps each file as a list of chunks."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size
        self.files: dict[str, StoredFile] = {}
        self.chunks: dict[str, list[bytes]] = {}

    def put(
        self,
        filename: str,
        source: BinaryIO,
        *,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> StoredFile:
        chunks = list(_read_chunks(source, self.chunk_size))
        stored = StoredFile(
            filename=filename,
            content_type=content_type,
            length=sum(len(c) for c in chunks),
            metadata=dict(metadata or {}),
        )
        self.files[filename] = stored
        self.chunks[filename] = chunks
        return stored

    def stat(self, filename: str) -> Optional[StoredFile]:
        return self.files.get(filename)

    def iter_chunks(self, filename: str) -> Iterator[bytes]:
        if filename not in self.chunks:
            raise FileNotFoundError(filename)
        yield from self.chunks[filename]


class GridFsMediaStore:
    """
    GridFS-backed storage. Metadata lives in ``<bucket>.files`` and content in
    ``<bucket>.chunks``; the newest revision wins when a filename repeats.
    """

    def __init__(self, db, bucket_name: str = "photos", chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.bucket_name = bucket_name
        self.chunk_size = chunk_size
        self._files = db[f"{bucket_name}.files"]
        self._fs = gridfs.GridFS(db, collection=bucket_name)
        self._bucket = gridfs.GridFSBucket(
            db, bucket_name=bucket_name, chunk_size_bytes=chunk_size
        )

    def put(
        self,
        filename: str,
        source: BinaryIO,
        *,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> StoredFile:
        try:
            file_id = self._fs.put(
                source,
                filename=filename,
                contentType=content_type,
                metadata=metadata or {},
                chunkSize=self.chunk_size,
            )
            doc = self._files.find_one({"_id": file_id})
        except PyMongoError as exc:
            raise StoreError("storing the uploaded file", exc) from exc
        return self._to_stored_file(doc)

    def _latest(self, filename: str) -> Optional[dict]:
        # _id breaks ties between revisions uploaded in the same millisecond.
        try:
            return self._files.find_one(
                {"filename": filename},
                sort=[("uploadDate", DESCENDING), ("_id", DESCENDING)],
            )
        except PyMongoError as exc:
            raise StoreError("retrieving the media file", exc) from exc

    def stat(self, filename: str) -> Optional[StoredFile]:
        doc = self._latest(filename)
        return self._to_stored_file(doc) if doc else None

    def iter_chunks(self, filename: str) -> Iterator[bytes]:
        doc = self._latest(filename)
        if doc is None:
            raise FileNotFoundError(filename)
        try:
            grid_out = self._bucket.open_download_stream(doc["_id"])
        except NoFile as exc:
            raise FileNotFoundError(filename) from exc
        with grid_out:
            while True:
                chunk = grid_out.readchunk()
                if not chunk:
                    return
                yield chunk

    def _to_stored_file(self, doc: dict) -> StoredFile:
        return StoredFile(
            filename=doc["filename"],
            content_type=doc.get("contentType"),
            length=doc.get("length", 0),
            metadata=doc.get("metadata") or {},
        )


@dataclass
class CosMediaStore:
    """
    S3-compatible storage client for Tencent COS. The object key is the
    generated filename; metadata travels as S3 user metadata.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        # Use virtual-hosted style addressing to satisfy COS requirements.
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def put(
        self,
        filename: str,
        source: BinaryIO,
        *,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> StoredFile:
        extra_args = {"Metadata": {k: str(v) for k, v in (metadata or {}).items()}}
        if content_type:
            extra_args["ContentType"] = content_type
        try:
            self._client.upload_fileobj(source, self.bucket, filename, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError("storing the uploaded file", exc) from exc
        stored = self.stat(filename)
        if stored is None:
            raise StoreError("storing the uploaded file")
        return stored

    def stat(self, filename: str) -> Optional[StoredFile]:
        try:
            head = self._client.head_object(Bucket=self.bucket, Key=filename)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return None
            raise StoreError("retrieving the media file", exc) from exc
        except BotoCoreError as exc:
            raise StoreError("retrieving the media file", exc) from exc
        return StoredFile(
            filename=filename,
            content_type=head.get("ContentType"),
            length=head.get("ContentLength", 0),
            metadata=head.get("Metadata") or {},
        )

    def iter_chunks(self, filename: str) -> Iterator[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=filename)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                raise FileNotFoundError(filename) from exc
            raise
        body = response["Body"]
        try:
            yield from body.iter_chunks(chunk_size=self.chunk_size)
        finally:
            body.close()
