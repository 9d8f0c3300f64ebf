"""
HTTP routes for the teams API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import StreamingResponse

from teams_backend import services
from teams_backend.config import Settings
from teams_backend.db import DocumentStore
from teams_backend.dependencies import (
    get_app_settings,
    get_document_store,
    get_media_store,
)
from teams_backend.errors import ValidationError
from teams_backend.schemas import (
    Body,
    BodyPayload,
    CascadeDeleteResponse,
    DeleteResult,
    InsertResponse,
    InsertResult,
    Member,
    MessageResponse,
    UpdateResponse,
    UpdateResult,
)
from teams_backend.storage import MediaStore
from teams_backend.uploads import stored_post_image

router = APIRouter()


@dataclass
class MemberFields:
    name: Optional[str]
    role: Optional[str]


async def member_fields(
    request: Request,
    name: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
) -> MemberFields:
    """Read name and role from form fields, or from a JSON object body."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as exc:
            raise ValidationError("Invalid JSON body.") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON body.")
        name, role = payload.get("name"), payload.get("role")
    return MemberFields(name=name, role=role)


@router.post("/teamlist", response_model=InsertResponse)
def create_body(payload: BodyPayload, db: DocumentStore = Depends(get_document_store)):
    body = services.create_body(db, payload.bodyName)
    return InsertResponse(
        message="Body added to teamlist",
        result=InsertResult(insertedId=body.id),
    )


@router.get("/teamlist", response_model=list[Body])
def list_bodies(db: DocumentStore = Depends(get_document_store)):
    return [Body.model_validate(body.as_dict()) for body in services.list_bodies(db)]


@router.put("/teamlist/update/{body_id}", response_model=UpdateResponse)
def rename_body(
    body_id: str,
    payload: BodyPayload,
    db: DocumentStore = Depends(get_document_store),
):
    outcome = services.rename_body(db, body_id, payload.bodyName)
    return UpdateResponse(
        message="Body name updated successfully",
        result=UpdateResult(
            matchedCount=outcome.matched_count, modifiedCount=outcome.modified_count
        ),
    )


@router.delete("/teamlist/delete/{body_id}", response_model=CascadeDeleteResponse)
def delete_body(body_id: str, db: DocumentStore = Depends(get_document_store)):
    outcome = services.delete_body(db, body_id)
    return CascadeDeleteResponse(
        message="Body and related team members deleted successfully",
        bodyDeleteResult=DeleteResult(deletedCount=outcome.bodies_deleted),
        teamDeleteResult=DeleteResult(deletedCount=outcome.members_deleted),
    )


@router.get("/media/{filename}")
def get_media(filename: str, media: MediaStore = Depends(get_media_store)):
    """Stream a stored photo back with its original content type."""
    download = services.open_media(media, filename)
    return StreamingResponse(
        download.chunks,
        media_type=download.file.media_type,
        headers={"Content-Length": str(download.file.length)},
    )


@router.put("/update/{member_id}", response_model=UpdateResponse)
def update_member(
    member_id: str,
    fields: MemberFields = Depends(member_fields),
    post_image: Optional[str] = Depends(stored_post_image),
    db: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_app_settings),
):
    services.update_member(
        db,
        member_id,
        fields.name,
        fields.role,
        post_image,
        preserve_image=settings.preserve_member_image_on_update,
    )
    return UpdateResponse(message="Team member updated successfully")


@router.delete("/delete/{member_id}", response_model=MessageResponse)
def delete_member(member_id: str, db: DocumentStore = Depends(get_document_store)):
    services.delete_member(db, member_id)
    return MessageResponse(message="Team member deleted successfully")


@router.post("/{body_id}", response_model=InsertResponse)
def add_member(
    body_id: str,
    fields: MemberFields = Depends(member_fields),
    post_image: Optional[str] = Depends(stored_post_image),
    db: DocumentStore = Depends(get_document_store),
):
    member = services.add_member(db, body_id, fields.name, fields.role, post_image)
    return InsertResponse(
        message="Team member added successfully",
        result=InsertResult(insertedId=member.id),
    )


@router.get("/{body_id}", response_model=list[Member])
def list_members(body_id: str, db: DocumentStore = Depends(get_document_store)):
    return [
        Member.model_validate(member.as_dict())
        for member in services.list_members(db, body_id)
    ]
