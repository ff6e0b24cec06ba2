"""
HTTP routes for the campus backend.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from campus.db import (
    HOMEPAGE_POST_TYPE,
    LOST_AND_FOUND_POST_TYPE,
    DbClient,
    DocumentRecord,
    EventRecord,
    PostRecord,
)
from campus.dependencies import get_db_client, get_image_uploader
from campus.errors import NotFoundError, ValidationError, failure_boundary
from campus.schemas import (
    CreateDocumentRequest,
    CreateDocumentResponse,
    CreateEventRequest,
    CreateEventResponse,
    CreatePostResponse,
    DocumentListResponse,
    EventDetailResponse,
    EventNameOut,
    FeedItem,
    HealthResponse,
    ProfileResponse,
    ProfileUser,
)
from campus.uploads import ImageUploader, UploadedImage

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_FIELDS_REQUIRED = "All fields are required"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _require(*values: Any) -> None:
    if any(_is_missing(value) for value in values):
        raise ValidationError(ALL_FIELDS_REQUIRED)


def _discard_image(uploader: ImageUploader, image: UploadedImage) -> None:
    try:
        uploader.delete_image(image)
    except Exception:
        logger.exception("Could not remove orphaned image %s", image.url)


@router.get("/", response_model=HealthResponse)
def read_root():
    return HealthResponse(message="Campus backend is running")


@router.post("/createPost", response_model=CreatePostResponse, status_code=201)
async def create_post(
    post_text: Optional[str] = Form(None, alias="postText"),
    post_type: Optional[str] = Form(None, alias="type"),
    firebase_uid: Optional[str] = Form(None, alias="firebaseUID"),
    post_image: Optional[UploadFile] = File(None, alias="postImage"),
    db: DbClient = Depends(get_db_client),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """
    Create a post, uploading the attached image first.

    The Lost & Found image requirement is checked only once the upload has
    resolved, and a hosted image is removed again if the insert fails.
    """
    with failure_boundary("Failed to create post", envelope={"status": "error"}):
        _require(post_text, post_type, firebase_uid)

        uploaded: Optional[UploadedImage] = None
        if post_image is not None:
            data = await post_image.read()
            if data:
                uploaded = await run_in_threadpool(
                    uploader.upload_image,
                    data,
                    post_image.filename or "upload",
                    post_image.content_type,
                )

        image_url = uploaded.url if uploaded else ""
        if post_type == LOST_AND_FOUND_POST_TYPE and not image_url:
            raise ValidationError("Lost and found posts require an image")

        record = PostRecord(
            firebase_uid=firebase_uid,
            text=post_text,
            type=post_type,
            image_url=image_url,
        )
        try:
            post_id = await run_in_threadpool(db.insert_post, record)
        except Exception:
            if uploaded:
                await run_in_threadpool(_discard_image, uploader, uploaded)
            raise

        logger.info("Created %s post %s for %s", post_type, post_id, firebase_uid)
        return CreatePostResponse(
            status="success", post={**record.as_dict(), "_id": post_id}
        )


@router.post("/createEvent", response_model=CreateEventResponse, status_code=201)
def create_event(
    payload: Optional[CreateEventRequest] = Body(None),
    db: DbClient = Depends(get_db_client),
):
    with failure_boundary("Internal server error"):
        payload = payload or CreateEventRequest()
        _require(
            payload.name,
            payload.description,
            payload.host,
            payload.time,
            payload.location,
            payload.contactName,
            payload.contactEmail,
            payload.fee,
        )
        record = EventRecord(
            name=payload.name,
            description=payload.description,
            host=payload.host,
            time=payload.time,
            location=payload.location,
            contact_name=payload.contactName,
            contact_email=payload.contactEmail,
            regfee=payload.fee,
        )
        event_id = db.insert_event(record)
        logger.info("Created event %r (%s)", record.name, event_id)
        return CreateEventResponse(
            message="Event created successfully",
            event={**record.as_dict(), "_id": event_id},
        )


@router.post(
    "/createDocument", response_model=CreateDocumentResponse, status_code=201
)
def create_document(
    payload: Optional[CreateDocumentRequest] = Body(None),
    db: DbClient = Depends(get_db_client),
):
    with failure_boundary("Failed to upload document"):
        payload = payload or CreateDocumentRequest()
        _require(payload.name, payload.type, payload.url, payload.firebaseUID)
        record = DocumentRecord(
            name=payload.name,
            url=payload.url,
            type=payload.type,
            firebase_uid=payload.firebaseUID,
        )
        document_id = db.insert_document(record)
        logger.info("Registered document %r (%s)", record.name, document_id)
        return CreateDocumentResponse(
            message="Document uploaded",
            document={**record.as_dict(), "_id": document_id},
        )


@router.get("/events", response_model=list[EventNameOut])
def list_events(db: DbClient = Depends(get_db_client)):
    with failure_boundary("Failed to fetch events"):
        return [EventNameOut(**event) for event in db.list_open_event_names()]


@router.get("/eventDetails", response_model=EventDetailResponse)
def event_details(
    name: Optional[str] = Query(None), db: DbClient = Depends(get_db_client)
):
    with failure_boundary("Failed to fetch event details"):
        if _is_missing(name):
            raise ValidationError("Missing event name in query")
        event = db.find_event(name)
        if event is None:
            raise NotFoundError("Event not found")
        return EventDetailResponse(event=event)


def _feed(db: DbClient, post_type: str) -> list[FeedItem]:
    return [FeedItem(posts=row) for row in db.list_feed(post_type)]


@router.get("/posts", response_model=list[FeedItem])
def homepage_feed(db: DbClient = Depends(get_db_client)):
    with failure_boundary("Failed to fetch posts"):
        return _feed(db, HOMEPAGE_POST_TYPE)


@router.get("/lostfound", response_model=list[FeedItem])
def lost_and_found_feed(db: DbClient = Depends(get_db_client)):
    with failure_boundary("Failed to fetch posts"):
        return _feed(db, LOST_AND_FOUND_POST_TYPE)


@router.get("/profile", response_model=ProfileResponse)
def profile(
    firebase_uid: Optional[str] = Query(None, alias="firebaseUID"),
    db: DbClient = Depends(get_db_client),
):
    with failure_boundary("Something went wrong"):
        if _is_missing(firebase_uid):
            raise ValidationError("firebaseUID is required")
        user = db.find_user(firebase_uid)
        if user is None:
            raise NotFoundError("User not found")
        posts = db.list_user_posts(user["firebaseUID"], HOMEPAGE_POST_TYPE)
        return ProfileResponse(
            user=ProfileUser(
                firebaseUID=user.get("firebaseUID"),
                universityId=user.get("uid"),
                name=user.get("name"),
                role=user.get("role"),
                department=user.get("department"),
                profileImage=user.get("profileImage"),
                email=user.get("email"),
                club=user.get("club"),
                joiningYear=user.get("joiningYear"),
            ),
            posts=posts,
        )


@router.get("/documents", response_model=DocumentListResponse)
def list_documents(db: DbClient = Depends(get_db_client)):
    with failure_boundary("Failed to fetch documents"):
        return DocumentListResponse(document=db.list_documents())
