"""
Pydantic schemas for the campus backend.

Request bodies declare every field optional so that missing values are
reported through the API's own 400 envelope instead of FastAPI's 422.
Fields echoed from stored documents are loosely typed because users and
older rows are written by other services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class StoredModel(BaseModel):
    """Base for documents echoed back from the database."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CreateEventRequest(BaseModel):
    name: Optional[Any] = None
    description: Optional[Any] = None
    host: Optional[Any] = None
    time: Optional[Any] = None
    location: Optional[Any] = None
    contactName: Optional[Any] = None
    contactEmail: Optional[Any] = None
    fee: Optional[Any] = None


class CreateDocumentRequest(BaseModel):
    name: Optional[Any] = None
    type: Optional[Any] = None
    url: Optional[Any] = None
    firebaseUID: Optional[Any] = None


class StoredPost(StoredModel):
    firebaseUID: Optional[Any] = None
    text: Optional[Any] = None
    type: Optional[Any] = None
    imageUrl: Optional[Any] = None
    createdAt: Optional[datetime] = None


class PostOut(StoredPost):
    id: Optional[str] = Field(default=None, alias="_id")


class CreatePostResponse(BaseModel):
    status: Literal["success"]
    post: PostOut


class EventOut(StoredModel):
    name: Optional[Any] = None
    description: Optional[Any] = None
    host: Optional[Any] = None
    time: Optional[Any] = None
    location: Optional[Any] = None
    contactName: Optional[Any] = None
    contactEmail: Optional[Any] = None
    regfee: Optional[Any] = None
    isCompleted: Optional[bool] = None
    createdAt: Optional[datetime] = None


class CreatedEventOut(EventOut):
    id: Optional[str] = Field(default=None, alias="_id")


class CreateEventResponse(BaseModel):
    message: str
    event: CreatedEventOut


class EventNameOut(BaseModel):
    name: Optional[Any] = None


class EventDetailResponse(BaseModel):
    event: EventOut


class DocumentOut(StoredModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[Any] = None
    url: Optional[Any] = None
    type: Optional[Any] = None
    firebaseUID: Optional[Any] = None
    createdAt: Optional[datetime] = None


class CreateDocumentResponse(BaseModel):
    message: str
    document: DocumentOut


class DocumentListResponse(BaseModel):
    document: list[DocumentOut]


class FeedPost(BaseModel):
    firebaseUID: Optional[Any] = None
    text: Optional[Any] = None
    createdAt: Optional[datetime] = None
    type: Optional[Any] = None
    imageUrl: Optional[Any] = None
    name: Any = "Unknown"
    profileImage: Optional[Any] = None


class FeedItem(BaseModel):
    posts: FeedPost


class ProfileUser(BaseModel):
    firebaseUID: Optional[Any] = None
    universityId: Optional[Any] = None
    name: Optional[Any] = None
    role: Optional[Any] = None
    department: Optional[Any] = None
    profileImage: Optional[Any] = None
    email: Optional[Any] = None
    club: Optional[Any] = None
    joiningYear: Optional[Any] = None


class ProfileResponse(BaseModel):
    user: ProfileUser
    posts: list[StoredPost]


class HealthResponse(BaseModel):
    message: str
