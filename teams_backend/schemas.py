"""
Pydantic schemas for the teams API.

Field names follow the stored documents (``_id``, ``bodyName``, ``Name``...)
so existing clients keep working.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BodyPayload(BaseModel):
    bodyName: Optional[str] = None


class Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    bodyName: Optional[str] = None


class Member(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    Name: Optional[str] = None
    Role: Optional[str] = None
    Belongs: Optional[str] = None
    postImage: Optional[str] = None


class InsertResult(BaseModel):
    acknowledged: bool = True
    insertedId: str


class UpdateResult(BaseModel):
    acknowledged: bool = True
    matchedCount: int
    modifiedCount: int


class DeleteResult(BaseModel):
    acknowledged: bool = True
    deletedCount: int


class InsertResponse(BaseModel):
    message: str
    result: InsertResult


class UpdateResponse(BaseModel):
    message: str
    result: Optional[UpdateResult] = None


class CascadeDeleteResponse(BaseModel):
    message: str
    bodyDeleteResult: DeleteResult
    teamDeleteResult: DeleteResult


class MessageResponse(BaseModel):
    message: str
