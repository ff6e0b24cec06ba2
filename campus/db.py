"""
Database abstraction for MongoDB and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Optional, Protocol

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from campus.errors import PersistenceError

logger = logging.getLogger(__name__)

POSTS_COLLECTION = "posts"
EVENTS_COLLECTION = "events"
DOCUMENTS_COLLECTION = "documents"
USERS_COLLECTION = "users"

HOMEPAGE_POST_TYPE = "Homepage"
LOST_AND_FOUND_POST_TYPE = "Lost & Found"

UNKNOWN_USER_NAME = "Unknown"

FEED_FIELDS = ("firebaseUID", "text", "createdAt", "type", "imageUrl")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DbClient(Protocol):
    """Interface for database access."""

    def insert_post(self, post: "PostRecord") -> str:
        ...

    def list_feed(self, post_type: str) -> list[dict]:
        ...

    def insert_event(self, event: "EventRecord") -> str:
        ...

    def list_open_event_names(self) -> list[dict]:
        ...

    def find_event(self, name: str) -> Optional[dict]:
        ...

    def insert_document(self, document: "DocumentRecord") -> str:
        ...

    def list_documents(self) -> list[dict]:
        ...

    def find_user(self, firebase_uid: str) -> Optional[dict]:
        ...

    def list_user_posts(self, firebase_uid: str, post_type: str) -> list[dict]:
        ...


@dataclass
class PostRecord:
    firebase_uid: str
    text: str
    type: str
    image_url: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "firebaseUID": self.firebase_uid,
            "text": self.text,
            "type": self.type,
            "imageUrl": self.image_url,
            "createdAt": self.created_at,
        }


@dataclass
class EventRecord:
    name: str
    description: str
    host: str
    time: str
    location: str
    contact_name: str
    contact_email: str
    regfee: Any
    is_completed: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "host": self.host,
            "time": self.time,
            "location": self.location,
            "contactName": self.contact_name,
            "contactEmail": self.contact_email,
            "regfee": self.regfee,
            "isCompleted": self.is_completed,
            "createdAt": self.created_at,
        }


@dataclass
class DocumentRecord:
    name: str
    url: str
    type: str
    firebase_uid: str
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "url": self.url,
            "type": self.type,
            "firebaseUID": self.firebase_uid,
            "createdAt": self.created_at,
        }


def feed_pipeline(post_type: str) -> list[dict]:
    """Aggregation joining posts of `post_type` to their authors."""
    projection: dict[str, Any] = {"_id": 0}
    projection.update({name: 1 for name in FEED_FIELDS})
    projection["name"] = {"$ifNull": ["$user.name", UNKNOWN_USER_NAME]}
    projection["profileImage"] = {"$ifNull": ["$user.profileImage", None]}
    return [
        {"$match": {"type": post_type}},
        {
            "$lookup": {
                "from": USERS_COLLECTION,
                "localField": "firebaseUID",
                "foreignField": "firebaseUID",
                "as": "user",
            }
        },
        {"$unwind": {"path": "$user", "preserveNullAndEmptyArrays": True}},
        {"$project": projection},
    ]


def _public_id(doc: dict) -> dict:
    d = dict(doc)
    if isinstance(d.get("_id"), ObjectId):
        d["_id"] = str(d["_id"])
    return d


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.posts: list[dict] = []
        self.events: list[dict] = []
        self.documents: list[dict] = []
        self.users: list[dict] = []

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.posts.clear()
        self.events.clear()
        self.documents.clear()
        self.users.clear()

    def add_user(self, user: dict) -> str:
        return self._insert(self.users, user)

    def _insert(self, collection: list[dict], doc: dict) -> str:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        collection.append(stored)
        return str(stored["_id"])

    def insert_post(self, post: PostRecord) -> str:
        return self._insert(self.posts, post.as_dict())

    def list_feed(self, post_type: str) -> list[dict]:
        rows: list[dict] = []
        for post in self.posts:
            if post.get("type") != post_type:
                continue
            authors = [
                user
                for user in self.users
                if "firebaseUID" in post
                and user.get("firebaseUID") == post["firebaseUID"]
            ]
            # $unwind with preserveNullAndEmptyArrays keeps unmatched posts.
            for author in authors or [None]:
                row = {name: post[name] for name in FEED_FIELDS if name in post}
                author = author or {}
                name = author.get("name")
                row["name"] = UNKNOWN_USER_NAME if name is None else name
                row["profileImage"] = author.get("profileImage")
                rows.append(copy.deepcopy(row))
        return rows

    def insert_event(self, event: EventRecord) -> str:
        return self._insert(self.events, event.as_dict())

    def list_open_event_names(self) -> list[dict]:
        return [
            {"name": event["name"]} if "name" in event else {}
            for event in self.events
            if event.get("isCompleted") is False
        ]

    def find_event(self, name: str) -> Optional[dict]:
        for event in self.events:
            if event.get("name") == name:
                found = copy.deepcopy(event)
                found.pop("_id", None)
                return found
        return None

    def insert_document(self, document: DocumentRecord) -> str:
        return self._insert(self.documents, document.as_dict())

    def list_documents(self) -> list[dict]:
        return [_public_id(copy.deepcopy(doc)) for doc in self.documents]

    def find_user(self, firebase_uid: str) -> Optional[dict]:
        for user in self.users:
            if user.get("firebaseUID") == firebase_uid:
                return _public_id(copy.deepcopy(user))
        return None

    def list_user_posts(self, firebase_uid: str, post_type: str) -> list[dict]:
        posts = []
        for post in self.posts:
            if post.get("firebaseUID") == firebase_uid and post.get("type") == post_type:
                found = copy.deepcopy(post)
                found.pop("_id", None)
                posts.append(found)
        return posts


class MongoDbClient:
    """
    pymongo-backed implementation. Accepts an already-selected database so
    callers (and tests) control how the connection is made.
    """

    def __init__(self, database: Database):
        self.db = database

    @classmethod
    def from_uri(
        cls,
        mongo_uri: str,
        db_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> "MongoDbClient":
        if not mongo_uri:
            raise ValueError("MONGO_URI is required for MongoDbClient")
        client = MongoClient(
            mongo_uri,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            tz_aware=True,
        )
        return cls(client[db_name])

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except PyMongoError as exc:
            logger.error("MongoDB %s failed: %s", operation, exc)
            raise PersistenceError(f"Database {operation} failed") from exc

    def _insert(self, collection: str, doc: dict) -> str:
        with self._translate_errors(f"insert into {collection}"):
            result = self.db[collection].insert_one(dict(doc))
        return str(result.inserted_id)

    def insert_post(self, post: PostRecord) -> str:
        return self._insert(POSTS_COLLECTION, post.as_dict())

    def list_feed(self, post_type: str) -> list[dict]:
        with self._translate_errors("feed aggregation"):
            return list(self.db[POSTS_COLLECTION].aggregate(feed_pipeline(post_type)))

    def insert_event(self, event: EventRecord) -> str:
        return self._insert(EVENTS_COLLECTION, event.as_dict())

    def list_open_event_names(self) -> list[dict]:
        with self._translate_errors("event listing"):
            return list(
                self.db[EVENTS_COLLECTION].find(
                    {"isCompleted": False}, {"_id": 0, "name": 1}
                )
            )

    def find_event(self, name: str) -> Optional[dict]:
        with self._translate_errors("event lookup"):
            return self.db[EVENTS_COLLECTION].find_one({"name": name}, {"_id": 0})

    def insert_document(self, document: DocumentRecord) -> str:
        return self._insert(DOCUMENTS_COLLECTION, document.as_dict())

    def list_documents(self) -> list[dict]:
        with self._translate_errors("document listing"):
            return [_public_id(doc) for doc in self.db[DOCUMENTS_COLLECTION].find()]

    def find_user(self, firebase_uid: str) -> Optional[dict]:
        with self._translate_errors("user lookup"):
            user = self.db[USERS_COLLECTION].find_one({"firebaseUID": firebase_uid})
        return _public_id(user) if user else None

    def list_user_posts(self, firebase_uid: str, post_type: str) -> list[dict]:
        with self._translate_errors("post listing"):
            return list(
                self.db[POSTS_COLLECTION].find(
                    {"firebaseUID": firebase_uid, "type": post_type}, {"_id": 0}
                )
            )
