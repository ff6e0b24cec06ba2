"""
Dependency wiring for the FastAPI app.

Collaborators are built once by `build_services` and stored on the app, so
every handler receives them from `request.app.state` rather than a global.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from campus.config import Settings
from campus.db import DbClient, InMemoryDbClient, MongoDbClient
from campus.uploads import (
    ImageUploader,
    ImgbbImageUploader,
    InMemoryImageUploader,
    S3ImageUploader,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    db: DbClient
    uploader: ImageUploader


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.mongo_uri:
        logger.warning("MONGO_URI not configured; using in-memory database")
        return InMemoryDbClient()
    logger.info("Using MongoDB database %s", settings.db_name)
    return MongoDbClient.from_uri(
        settings.mongo_uri,
        settings.db_name,
        server_selection_timeout_ms=settings.mongo_server_selection_timeout_ms,
    )


def build_image_uploader(settings: Settings) -> ImageUploader:
    provider = settings.image_provider
    if settings.use_in_memory_backends or provider == "memory":
        return InMemoryImageUploader()

    if provider == "s3":
        if not settings.s3_bucket:
            logger.warning("S3_BUCKET not configured; using in-memory uploader")
            return InMemoryImageUploader()
        return S3ImageUploader(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.s3_public_base_url or "",
        )

    if not settings.imgbb_api_key:
        logger.warning("IMGBB_API_KEY not configured; using in-memory uploader")
        return InMemoryImageUploader()
    return ImgbbImageUploader(
        api_key=settings.imgbb_api_key,
        upload_url=settings.imgbb_upload_url,
        timeout=settings.upload_timeout_seconds,
    )


def build_services(settings: Settings) -> ServiceContext:
    return ServiceContext(
        db=build_db_client(settings),
        uploader=build_image_uploader(settings),
    )


def get_services(request: Request) -> ServiceContext:
    return request.app.state.services


def get_db_client(request: Request) -> DbClient:
    return get_services(request).db


def get_image_uploader(request: Request) -> ImageUploader:
    return get_services(request).uploader
