"""
Image upload abstraction for imgbb, S3-compatible media buckets and in-memory
testing.
"""

from __future__ import annotations

import base64
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
import requests
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from campus.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"
REQUEST_TIMEOUT = 30  # seconds


@dataclass
class UploadedImage:
    url: str
    # Provider-specific handle needed to remove the image again.
    delete_ref: Optional[str] = None


class ImageUploader(Protocol):
    """Defines the operations the API needs from an image host."""

    def upload_image(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> UploadedImage:
        ...

    def delete_image(self, image: UploadedImage) -> None:
        ...


@dataclass
class InMemoryImageUploader:
    """Test double for image hosting."""

    base_url: str = "https://example.test/images"
    fail_uploads: bool = False
    stored_images: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)

    def upload_image(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> UploadedImage:
        if self.fail_uploads:
            raise UploadError("Image upload failed")
        key = f"{uuid.uuid4().hex}/{filename}"
        self.stored_images[key] = data
        return UploadedImage(url=f"{self.base_url}/{key}", delete_ref=key)

    def delete_image(self, image: UploadedImage) -> None:
        self.stored_images.pop(image.delete_ref, None)
        self.deleted.append(image.url)


@dataclass
class ImgbbImageUploader:
    """
    Uploads images to the imgbb HTTP API.

    imgbb exposes deletion only through a browser page, so `delete_image`
    can do no more than report the orphan.
    """

    api_key: str
    upload_url: str = DEFAULT_IMGBB_UPLOAD_URL
    timeout: float = REQUEST_TIMEOUT

    def upload_image(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> UploadedImage:
        encoded = base64.b64encode(data).decode("ascii")
        try:
            response = requests.post(
                self.upload_url,
                params={"key": self.api_key},
                data={"image": encoded, "name": filename},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("imgbb upload of %s failed: %s", filename, exc)
            raise UploadError("Image upload failed") from exc

        payload = body.get("data") or {}
        url = payload.get("url")
        if not body.get("success", True) or not url:
            logger.warning("imgbb rejected upload of %s: %s", filename, body)
            raise UploadError("Image upload failed")
        return UploadedImage(url=url, delete_ref=payload.get("delete_url"))

    def delete_image(self, image: UploadedImage) -> None:
        logger.warning(
            "imgbb has no delete API; orphaned image %s (delete page: %s)",
            image.url,
            image.delete_ref,
        )


@dataclass
class S3ImageUploader:
    """
    Managed media bucket on an S3-compatible endpoint.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""
    key_prefix: str = "posts"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )
        if not self.public_base_url:
            self.public_base_url = f"https://{self.bucket}.s3.amazonaws.com"

    def _url_for(self, key: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/{key}"

    def upload_image(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> UploadedImage:
        key = f"{self.key_prefix}/{uuid.uuid4().hex}/{filename}"
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("S3 upload of %s failed: %s", key, exc)
            raise UploadError("Image upload failed") from exc
        return UploadedImage(url=self._url_for(key), delete_ref=key)

    def delete_image(self, image: UploadedImage) -> None:
        if not image.delete_ref:
            return
        try:
            self._client.delete_object(Bucket=self.bucket, Key=image.delete_ref)
        except (BotoCoreError, ClientError) as exc:
            raise UploadError("Image cleanup failed") from exc
