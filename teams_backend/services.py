"""
Body and member management plus media retrieval.

Each operation takes its stores explicitly. Multi-step sequences (check the
body, then insert the member; delete the body, then its members) are not
atomic: a concurrent delete can leave a member pointing at a missing body.
Such orphans are tolerated and never repaired here.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from teams_backend.db import BodyRecord, DocumentStore, MemberRecord, UpdateOutcome
from teams_backend.errors import NotFoundError, StreamError, ValidationError
from teams_backend.storage import MediaStore, StoredFile

logger = logging.getLogger(__name__)

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass
class CascadeOutcome:
    bodies_deleted: int
    members_deleted: int


@dataclass
class MediaDownload:
    file: StoredFile
    chunks: Iterator[bytes]


def require_object_id(value: Optional[str]) -> str:
    if not value or not OBJECT_ID_PATTERN.match(value):
        raise ValidationError("Invalid ID format.")
    return value


def _require_body_name(body_name: Optional[str]) -> str:
    if not body_name or not body_name.strip():
        raise ValidationError("Body name is required.")
    return body_name


# Bodies


def create_body(db: DocumentStore, body_name: Optional[str]) -> BodyRecord:
    body = db.insert_body(_require_body_name(body_name))
    logger.info("Added body %s (%s) to teamlist", body.id, body.body_name)
    return body


def list_bodies(db: DocumentStore) -> list[BodyRecord]:
    return db.list_bodies()


def rename_body(db: DocumentStore, body_id: str, body_name: Optional[str]) -> UpdateOutcome:
    require_object_id(body_id)
    _require_body_name(body_name)
    outcome = db.rename_body(body_id, body_name)
    if outcome.matched_count == 0:
        raise NotFoundError("Body not found.")
    return outcome


def delete_body(db: DocumentStore, body_id: str) -> CascadeOutcome:
    """Delete a body and then every member that belongs to it."""
    require_object_id(body_id)
    if db.delete_body(body_id) == 0:
        raise NotFoundError("Body not found.")
    # Not rolled back if this step fails; the members stay orphaned.
    members_deleted = db.delete_members_of(body_id)
    logger.info("Deleted body %s and %d member(s)", body_id, members_deleted)
    return CascadeOutcome(bodies_deleted=1, members_deleted=members_deleted)


# Members


def _require_body(db: DocumentStore, body_id: str) -> BodyRecord:
    body = db.get_body(require_object_id(body_id))
    if not body:
        raise NotFoundError("Body not found in teamlist")
    return body


def add_member(
    db: DocumentStore,
    body_id: str,
    name: Optional[str],
    role: Optional[str],
    post_image: Optional[str] = None,
) -> MemberRecord:
    _require_body(db, body_id)
    member = db.insert_member(body_id, name, role, post_image)
    logger.info("Added member %s to body %s", member.id, body_id)
    return member


def list_members(db: DocumentStore, body_id: str) -> list[MemberRecord]:
    _require_body(db, body_id)
    members = db.list_members(body_id)
    if not members:
        raise NotFoundError(f"No team members found for body ID {body_id}")
    return members


def update_member(
    db: DocumentStore,
    member_id: str,
    name: Optional[str],
    role: Optional[str],
    post_image: Optional[str] = None,
    *,
    preserve_image: bool = False,
) -> UpdateOutcome:
    """
    Overwrite a member's name, role and photo. Without a new upload the photo
    is cleared unless ``preserve_image`` is set, in which case the stored
    filename is kept.
    """
    require_object_id(member_id)
    if post_image is None and preserve_image:
        current = db.get_member(member_id)
        if not current:
            raise NotFoundError(f"No member found with ID {member_id}")
        post_image = current.post_image
    outcome = db.update_member(member_id, name=name, role=role, post_image=post_image)
    if outcome.matched_count == 0:
        raise NotFoundError(f"No member found with ID {member_id}")
    return outcome


def delete_member(db: DocumentStore, member_id: str) -> None:
    """Delete one member. Its photo stays in the media store."""
    require_object_id(member_id)
    if db.delete_member(member_id) == 0:
        raise NotFoundError(f"No member found with ID {member_id}")


# Media


def _guarded(filename: str, first: bytes, rest: Iterator[bytes]) -> Iterator[bytes]:
    yield first
    try:
        for chunk in rest:
            yield chunk
    except Exception as exc:
        logger.error("Error streaming %s mid-transfer: %s", filename, exc, exc_info=exc)
        raise StreamError("Error streaming the file") from exc


def open_media(media: MediaStore, filename: str) -> MediaDownload:
    """
    Resolve ``filename`` and start reading it. Absence is reported before any
    byte is produced; the first chunk is read eagerly so an unreadable file
    still fails cleanly.
    """
    stored = media.stat(filename)
    if stored is None:
        raise NotFoundError("File not found")

    chunks = iter(media.iter_chunks(filename))
    try:
        first = next(chunks, b"")
    except Exception as exc:
        logger.error("Error opening %s for streaming: %s", filename, exc, exc_info=exc)
        raise StreamError("Error streaming the file") from exc
    return MediaDownload(file=stored, chunks=_guarded(filename, first, chunks))
