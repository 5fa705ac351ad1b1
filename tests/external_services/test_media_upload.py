import hashlib

import httpx
import pytest

from vidshare.core.exceptions import MediaUploadError
from vidshare.external_services import media_upload
from vidshare.external_services.media_upload import (
    CloudinaryUploader,
    MockMediaUploader,
    cloudinary_signature,
    get_media_uploader,
)


def test_signature_sorts_parameters():
    expected = hashlib.sha1(b"a=1&b=2&timestamp=99shh").hexdigest()

    assert cloudinary_signature({"timestamp": "99", "b": "2", "a": "1"}, "shh") == expected


def _uploader(handler):
    return CloudinaryUploader(
        cloud_name="demo",
        api_key="key-123",
        api_secret="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_cloudinary_upload_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(
            200,
            json={
                "secure_url": "https://res.cloudinary.com/demo/video/upload/abc.mp4",
                "public_id": "abc",
                "resource_type": "video",
                "duration": 12.5,
            },
        )

    media = await _uploader(handler).upload("clip.mp4", b"\x00\x01", "video/mp4")

    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/auto/upload"
    assert b"key-123" in seen["body"]
    assert b"signature" in seen["body"]
    assert media.url.endswith("abc.mp4")
    assert media.public_id == "abc"
    assert media.resource_type == "video"
    assert media.duration == 12.5


@pytest.mark.asyncio
async def test_cloudinary_error_status_raises():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})

    with pytest.raises(MediaUploadError, match="HTTP 401"):
        await _uploader(handler).upload("a.png", b"img", "image/png")


@pytest.mark.asyncio
async def test_cloudinary_unreachable_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MediaUploadError, match="unreachable"):
        await _uploader(handler).upload("a.png", b"img", "image/png")


@pytest.mark.asyncio
async def test_cloudinary_response_without_url_raises():
    def handler(request):
        return httpx.Response(200, json={"public_id": "abc"})

    with pytest.raises(MediaUploadError, match="missing URL"):
        await _uploader(handler).upload("a.png", b"img", "image/png")


@pytest.mark.asyncio
async def test_empty_file_is_rejected_without_request():
    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    with pytest.raises(MediaUploadError, match="empty"):
        await _uploader(handler).upload("a.png", b"", "image/png")


@pytest.mark.asyncio
async def test_mock_uploader_returns_urls():
    media = await MockMediaUploader().upload("avatar.png", b"img", "image/png")

    assert media.url.startswith("https://media.example.com/")
    assert media.url.endswith("/avatar.png")
    assert media.resource_type == "image"


def test_factory_selects_mock(monkeypatch):
    monkeypatch.setattr(media_upload.settings, "MEDIA_UPLOAD_BACKEND", "mock")

    assert isinstance(get_media_uploader(), MockMediaUploader)


def test_factory_requires_cloudinary_credentials(monkeypatch):
    monkeypatch.setattr(media_upload.settings, "MEDIA_UPLOAD_BACKEND", "cloudinary")
    monkeypatch.setattr(media_upload.settings, "CLOUDINARY_CLOUD_NAME", None)

    with pytest.raises(MediaUploadError, match="not configured"):
        get_media_uploader()


def test_factory_builds_cloudinary(monkeypatch):
    monkeypatch.setattr(media_upload.settings, "MEDIA_UPLOAD_BACKEND", "Cloudinary")
    monkeypatch.setattr(media_upload.settings, "CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setattr(media_upload.settings, "CLOUDINARY_API_KEY", "k")
    monkeypatch.setattr(media_upload.settings, "CLOUDINARY_API_SECRET", "s")

    assert isinstance(get_media_uploader(), CloudinaryUploader)


def test_factory_rejects_unknown_backend(monkeypatch):
    monkeypatch.setattr(media_upload.settings, "MEDIA_UPLOAD_BACKEND", "s3")

    with pytest.raises(MediaUploadError, match="Unknown"):
        get_media_uploader()
