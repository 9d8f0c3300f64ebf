"""
Document store abstraction for MongoDB and an in-memory test implementation.

Bodies live in the ``teamlist`` collection and members in ``team``. Every
member carries a ``Belongs`` reference to the ``_id`` of its body.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Protocol

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from teams_backend.errors import StoreError


BODIES_COLLECTION = "teamlist"
MEMBERS_COLLECTION = "team"


class DocumentStore(Protocol):
    """Interface for document access."""

    def insert_body(self, body_name: str) -> "BodyRecord":
        ...

    def list_bodies(self) -> list["BodyRecord"]:
        ...

    def get_body(self, body_id: str) -> Optional["BodyRecord"]:
        ...

    def rename_body(self, body_id: str, body_name: str) -> "UpdateOutcome":
        ...

    def delete_body(self, body_id: str) -> int:
        ...

    def delete_members_of(self, body_id: str) -> int:
        ...

    def insert_member(
        self, body_id: str, name: Optional[str], role: Optional[str], post_image: Optional[str]
    ) -> "MemberRecord":
        ...

    def get_member(self, member_id: str) -> Optional["MemberRecord"]:
        ...

    def list_members(self, body_id: str) -> list["MemberRecord"]:
        ...

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str],
        role: Optional[str],
        post_image: Optional[str],
    ) -> "UpdateOutcome":
        ...

    def delete_member(self, member_id: str) -> int:
        ...

    def ping(self) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class BodyRecord:
    id: str
    body_name: str

    def as_dict(self) -> dict:
        return {"_id": self.id, "bodyName": self.body_name}


@dataclass
class MemberRecord:
    id: str
    name: Optional[str]
    role: Optional[str]
    belongs: str
    post_image: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "_id": self.id,
            "Name": self.name,
            "Role": self.role,
            "Belongs": self.belongs,
            "postImage": self.post_image,
        }


@dataclass
class UpdateOutcome:
    matched_count: int
    modified_count: int


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.bodies: Dict[str, BodyRecord] = {}
        self.members: Dict[str, MemberRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.bodies.clear()
        self.members.clear()

    def insert_body(self, body_name: str) -> BodyRecord:
        record = BodyRecord(id=str(ObjectId()), body_name=body_name)
        self.bodies[record.id] = record
        return record

    def list_bodies(self) -> list[BodyRecord]:
        return list(self.bodies.values())

    def get_body(self, body_id: str) -> Optional[BodyRecord]:
        return self.bodies.get(body_id)

    def rename_body(self, body_id: str, body_name: str) -> UpdateOutcome:
        body = self.bodies.get(body_id)
        if not body:
            return UpdateOutcome(matched_count=0, modified_count=0)
        modified = int(body.body_name != body_name)
        body.body_name = body_name
        return UpdateOutcome(matched_count=1, modified_count=modified)

    def delete_body(self, body_id: str) -> int:
        return 1 if self.bodies.pop(body_id, None) else 0

    def delete_members_of(self, body_id: str) -> int:
        doomed = [m.id for m in self.members.values() if m.belongs == body_id]
        for member_id in doomed:
            del self.members[member_id]
        return len(doomed)

    def insert_member(
        self, body_id: str, name: Optional[str], role: Optional[str], post_image: Optional[str]
    ) -> MemberRecord:
        record = MemberRecord(
            id=str(ObjectId()),
            name=name,
            role=role,
            belongs=body_id,
            post_image=post_image,
        )
        self.members[record.id] = record
        return record

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        return self.members.get(member_id)

    def list_members(self, body_id: str) -> list[MemberRecord]:
        return [m for m in self.members.values() if m.belongs == body_id]

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str],
        role: Optional[str],
        post_image: Optional[str],
    ) -> UpdateOutcome:
        member = self.members.get(member_id)
        if not member:
            return UpdateOutcome(matched_count=0, modified_count=0)
        before = (member.name, member.role, member.post_image)
        member.name = name
        member.role = role
        member.post_image = post_image
        modified = int(before != (name, role, post_image))
        return UpdateOutcome(matched_count=1, modified_count=modified)

    def delete_member(self, member_id: str) -> int:
        return 1 if self.members.pop(member_id, None) else 0

    def ping(self) -> None:
        return None

    def close(self) -> None:
        return None


@contextmanager
def _store_call(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(operation, exc) from exc


class MongoDocumentStore:
    """
    pymongo-backed implementation. Ids are validated by the caller; this class
    only converts them to ObjectIds.
    """

    def __init__(self, url: str, db_name: str, *, timeout_ms: int = 5000, client=None):
        if not url and client is None:
            raise ValueError("MONGO_URL is required for MongoDocumentStore")
        self.client = client or MongoClient(url, serverSelectionTimeoutMS=timeout_ms)
        self.db = self.client[db_name]
        self.bodies = self.db[BODIES_COLLECTION]
        self.members = self.db[MEMBERS_COLLECTION]

    def _to_body(self, doc: dict) -> BodyRecord:
        return BodyRecord(id=str(doc["_id"]), body_name=doc.get("bodyName"))

    def _to_member(self, doc: dict) -> MemberRecord:
        belongs = doc.get("Belongs")
        return MemberRecord(
            id=str(doc["_id"]),
            name=doc.get("Name"),
            role=doc.get("Role"),
            belongs=str(belongs) if belongs is not None else None,
            post_image=doc.get("postImage"),
        )

    def ping(self) -> None:
        with _store_call("connecting to the document store"):
            self.client.admin.command("ping")

    def close(self) -> None:
        self.client.close()

    def insert_body(self, body_name: str) -> BodyRecord:
        with _store_call("adding body to teamlist"):
            result = self.bodies.insert_one({"bodyName": body_name})
        return BodyRecord(id=str(result.inserted_id), body_name=body_name)

    def list_bodies(self) -> list[BodyRecord]:
        with _store_call("fetching the teamlist"):
            return [self._to_body(doc) for doc in self.bodies.find()]

    def get_body(self, body_id: str) -> Optional[BodyRecord]:
        with _store_call("looking up the body"):
            doc = self.bodies.find_one({"_id": ObjectId(body_id)})
        return self._to_body(doc) if doc else None

    def rename_body(self, body_id: str, body_name: str) -> UpdateOutcome:
        with _store_call("updating body name"):
            result = self.bodies.update_one(
                {"_id": ObjectId(body_id)}, {"$set": {"bodyName": body_name}}
            )
        return UpdateOutcome(result.matched_count, result.modified_count)

    def delete_body(self, body_id: str) -> int:
        with _store_call("deleting body"):
            return self.bodies.delete_one({"_id": ObjectId(body_id)}).deleted_count

    def delete_members_of(self, body_id: str) -> int:
        with _store_call("deleting related team members"):
            result = self.members.delete_many({"Belongs": ObjectId(body_id)})
        return result.deleted_count

    def insert_member(
        self, body_id: str, name: Optional[str], role: Optional[str], post_image: Optional[str]
    ) -> MemberRecord:
        doc = {
            "Name": name,
            "Role": role,
            "Belongs": ObjectId(body_id),
            "postImage": post_image,
        }
        with _store_call("adding the team member"):
            result = self.members.insert_one(doc)
        return MemberRecord(
            id=str(result.inserted_id),
            name=name,
            role=role,
            belongs=body_id,
            post_image=post_image,
        )

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        with _store_call("looking up the team member"):
            doc = self.members.find_one({"_id": ObjectId(member_id)})
        return self._to_member(doc) if doc else None

    def list_members(self, body_id: str) -> list[MemberRecord]:
        with _store_call("fetching team members"):
            docs = list(self.members.find({"Belongs": ObjectId(body_id)}))
        return [self._to_member(doc) for doc in docs]

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str],
        role: Optional[str],
        post_image: Optional[str],
    ) -> UpdateOutcome:
        with _store_call("updating the team member"):
            result = self.members.update_one(
                {"_id": ObjectId(member_id)},
                {"$set": {"Name": name, "Role": role, "postImage": post_image}},
            )
        return UpdateOutcome(result.matched_count, result.modified_count)

    def delete_member(self, member_id: str) -> int:
        with _store_call("deleting the team member"):
            return self.members.delete_one({"_id": ObjectId(member_id)}).deleted_count
