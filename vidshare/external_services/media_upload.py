"""Push user-supplied files (videos, thumbnails, avatars) to the media service.

Two implementations share the ``MediaUploader`` protocol:

1. **CloudinaryUploader** – signed upload against Cloudinary's REST upload
   API.  Requires ``CLOUDINARY_CLOUD_NAME``, ``CLOUDINARY_API_KEY`` and
   ``CLOUDINARY_API_SECRET``.
2. **MockMediaUploader** – no network; returns deterministic URLs.  Selected
   with ``MEDIA_UPLOAD_BACKEND=mock`` for local development.

Any failure is surfaced as ``MediaUploadError`` so the caller can reject the
request without persisting a half-created document.
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Optional, Protocol
from uuid import uuid4

import httpx
from opentelemetry import trace
from pydantic import BaseModel, Field

from vidshare.core.config import settings
from vidshare.core.exceptions import MediaUploadError
from vidshare.metrics import MEDIA_UPLOAD_DURATION_SECONDS

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/{resource_type}/upload"


class UploadedMedia(BaseModel):
    """What we keep from the media service's response."""

    url: str
    public_id: str = Field(alias="publicId", default="")
    resource_type: str = Field(alias="resourceType", default="auto")
    duration: Optional[float] = None

    model_config = {
        "populate_by_name": True,
    }


class MediaUploader(Protocol):
    async def upload(
        self, filename: str, content: bytes, content_type: Optional[str] = None
    ) -> UploadedMedia:
        ...


def cloudinary_signature(params: dict[str, str], api_secret: str) -> str:
    """Return the hex SHA-1 signature Cloudinary expects for *params*.

    Parameters are sorted by key and joined as ``k1=v1&k2=v2`` before the API
    secret is appended.
    """

    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
    """Signed uploads to Cloudinary with automatic resource-type detection."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout = timeout
        self._transport = transport

    async def upload(
        self, filename: str, content: bytes, content_type: Optional[str] = None
    ) -> UploadedMedia:
        if not content:
            raise MediaUploadError(f"File '{filename}' is empty")

        tracer = trace.get_tracer(__name__)
        start_time = time.perf_counter()

        with tracer.start_as_current_span("media.upload") as span:
            span.set_attribute("media.filename", filename)
            span.set_attribute("media.size_bytes", len(content))

            timestamp = str(int(time.time()))
            signed = {"timestamp": timestamp}
            form = {
                **signed,
                "api_key": self._api_key,
                "signature": cloudinary_signature(signed, self._api_secret),
            }
            url = CLOUDINARY_UPLOAD_URL.format(
                cloud_name=self._cloud_name, resource_type="auto"
            )
            files = {
                "file": (filename, content, content_type or "application/octet-stream")
            }

            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    resp = await client.post(url, data=form, files=files)
            except httpx.HTTPError as exc:
                raise MediaUploadError(f"Media service unreachable: {exc}") from exc

            if resp.status_code != 200:
                raise MediaUploadError(
                    f"Media service returned HTTP {resp.status_code}: {resp.text[:200]}"
                )

            data = resp.json()
            media_url = data.get("secure_url") or data.get("url")
            if not media_url:
                raise MediaUploadError("Media service response missing URL")

            result = UploadedMedia(
                url=media_url,
                public_id=data.get("public_id", ""),
                resource_type=data.get("resource_type", "auto"),
                duration=data.get("duration"),
            )

            duration = time.perf_counter() - start_time
            MEDIA_UPLOAD_DURATION_SECONDS.labels(backend="cloudinary").observe(duration)
            span.set_attribute("duration_ms", int(duration * 1000))

        logger.info("Uploaded %s to media service as %s", filename, result.public_id)
        return result


class MockMediaUploader:
    """Return fake, deterministic media URLs without any network traffic."""

    base_url = "https://media.example.com"

    async def upload(
        self, filename: str, content: bytes, content_type: Optional[str] = None
    ) -> UploadedMedia:
        if not content:
            raise MediaUploadError(f"File '{filename}' is empty")

        public_id = uuid4().hex
        resource_type = (content_type or "application/octet-stream").split("/", 1)[0]
        logger.debug("MOCK MEDIA: storing %s (%d bytes) as %s", filename, len(content), public_id)
        MEDIA_UPLOAD_DURATION_SECONDS.labels(backend="mock").observe(0)
        return UploadedMedia(
            url=f"{self.base_url}/{public_id}/{filename}",
            public_id=public_id,
            resource_type=resource_type,
            duration=None,
        )


def get_media_uploader() -> MediaUploader:
    """Build the uploader selected by ``MEDIA_UPLOAD_BACKEND``."""

    backend = settings.MEDIA_UPLOAD_BACKEND.lower()
    if backend == "mock":
        return MockMediaUploader()
    if backend != "cloudinary":
        raise MediaUploadError(f"Unknown media upload backend '{backend}'")

    if not (
        settings.CLOUDINARY_CLOUD_NAME
        and settings.CLOUDINARY_API_KEY
        and settings.CLOUDINARY_API_SECRET
    ):
        raise MediaUploadError("Cloudinary credentials are not configured")

    return CloudinaryUploader(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        timeout=settings.MEDIA_UPLOAD_TIMEOUT,
    )


__all__ = [
    "UploadedMedia",
    "MediaUploader",
    "CloudinaryUploader",
    "MockMediaUploader",
    "cloudinary_signature",
    "get_media_uploader",
]
