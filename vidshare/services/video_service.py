"""Business logic for the video catalog.

Videos are created from two uploaded files (the video itself and a
thumbnail), both pushed to the media service before the document is written.
Mutations are restricted to the owner; a video that exists but belongs to
someone else is reported as not found.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from astrapy.constants import ReturnDocument
from fastapi import HTTPException, status
from opentelemetry import trace

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.external_services.media_upload import MediaUploader, get_media_uploader
from vidshare.metrics import ASTRA_DB_QUERY_DURATION_SECONDS
from vidshare.models.common import VideoID
from vidshare.models.user import User
from vidshare.models.video import (
    Video,
    VideoDetail,
    VideoOwner,
    VideoUpdateRequest,
    WatchRecorded,
)
from vidshare.services import user_service
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VIDEOS_TABLE_NAME: str = "videos"

logger = logging.getLogger(__name__)


class UploadedFile:
    """A file received from a multipart form, already read into memory."""

    def __init__(self, filename: str, content: bytes, content_type: Optional[str] = None):
        self.filename = filename
        self.content = content
        self.content_type = content_type


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(name: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} is required"
        )
    return value.strip()


# ---------------------------------------------------------------------------
# Service Operations
# ---------------------------------------------------------------------------


async def create_video(
    *,
    title: Optional[str],
    description: Optional[str],
    video_file: Optional[UploadedFile],
    thumbnail: Optional[UploadedFile],
    current_user: User,
    duration: Optional[float] = None,
    is_published: bool = True,
    category: Optional[str] = None,
    uploader: Optional[MediaUploader] = None,
    db_table: Optional[AstraDBCollection] = None,
) -> Video:
    """Upload the media files and persist a new video owned by *current_user*."""

    title = _require_text("title", title)
    description = _require_text("description", description)

    if video_file is None or not video_file.content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Video file is required"
        )
    if thumbnail is None or not thumbnail.content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Thumbnail is required"
        )

    uploader = uploader or get_media_uploader()
    video_media, thumbnail_media = await asyncio.gather(
        uploader.upload(video_file.filename, video_file.content, video_file.content_type),
        uploader.upload(thumbnail.filename, thumbnail.content, thumbnail.content_type),
    )

    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    new_video = Video(
        id=uuid4(),
        videoFile=video_media.url,
        thumbnail=thumbnail_media.url,
        title=title,
        description=description,
        duration=video_media.duration if video_media.duration is not None else (duration or 0),
        isPublished=is_published,
        category=category.strip().lower() if category and category.strip() else None,
        owner=current_user.id,
    )

    await db_table.insert_one(document=serialize_doc(new_video.model_dump(by_alias=True)))
    logger.info("Video %s created by user %s", new_video.id, current_user.id)
    return new_video


async def get_video_by_id(
    video_id: VideoID, db_table: Optional[AstraDBCollection] = None
) -> Optional[Video]:
    """Fetch a single video by its ID, or ``None`` if it does not exist."""

    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    doc = await db_table.find_one(filter={"_id": str(video_id)})
    if doc is None:
        return None
    return Video.model_validate(doc)


async def get_video_detail(
    video_id: VideoID,
    videos_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> VideoDetail:
    video = await get_video_by_id(video_id, db_table=videos_table)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    owner = await user_service.get_user_by_id(video.owner, db_table=users_table)
    owner_details = (
        VideoOwner(id=owner.id, username=owner.username, avatar=owner.avatar)
        if owner is not None
        else None
    )
    return VideoDetail(**video.model_dump(), ownerDetails=owner_details)


async def get_owned_video(
    video_id: VideoID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Video:
    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    doc = await db_table.find_one(
        filter={"_id": str(video_id), "owner": str(current_user.id)}
    )
    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found or you are not the owner",
        )
    return Video.model_validate(doc)


async def update_video(
    video_id: VideoID,
    update_request: VideoUpdateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Video:
    """Update mutable fields of an owned video."""

    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    video = await get_owned_video(video_id, current_user, db_table=db_table)

    update_fields = update_request.model_dump(exclude_unset=True, exclude_none=True)
    if not update_fields:
        return video

    if "category" in update_fields:
        update_fields["category"] = update_fields["category"].strip().lower()
    update_fields["updatedAt"] = _now()

    await db_table.update_one(
        filter={"_id": str(video.id)}, update={"$set": serialize_doc(update_fields)}
    )

    updated_video = await get_video_by_id(video.id, db_table)
    if updated_video is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found after update.",
        )
    return updated_video


async def delete_video(
    video_id: VideoID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    video = await get_owned_video(video_id, current_user, db_table=db_table)
    await db_table.delete_one(filter={"_id": str(video.id)})
    logger.info("Video %s deleted by owner %s", video.id, current_user.id)


# ---------------------------------------------------------------------------
# Views & Listing
# ---------------------------------------------------------------------------


async def record_watch(
    video_id: VideoID,
    current_user: User,
    videos_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> WatchRecorded:
    """Count a view and append the video to the viewer's watch history."""

    if videos_table is None:
        videos_table = await get_table(VIDEOS_TABLE_NAME)

    doc = await videos_table.find_one_and_update(
        filter={"_id": str(video_id)},
        update={"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    entry = await user_service.append_watch_history(
        current_user.id, video_id, db_table=users_table
    )
    return WatchRecorded(
        videoId=video_id, views=int(doc.get("views", 0)), watchedAt=entry.watchedAt
    )


async def list_videos_with_query(
    query_filter: Dict[str, Any],
    page: int,
    page_size: int,
    sort_options: Optional[Dict[str, Any]] = None,
    db_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Video], int]:
    """Generic helper to run a paginated query over the videos collection."""

    tracer = trace.get_tracer(__name__)

    if db_table is None:
        db_table = await get_table(VIDEOS_TABLE_NAME)

    if sort_options is None:
        sort_options = {"createdAt": -1}

    skip = (page - 1) * page_size

    start_time = time.perf_counter()

    with tracer.start_as_current_span("astra.list_videos") as span:
        span.set_attribute("page", page)
        span.set_attribute("page_size", page_size)

        find_kwargs: Dict[str, Any] = {
            "filter": query_filter,
            "limit": page_size,
            "sort": sort_options,
        }
        if skip > 0:
            find_kwargs["skip"] = skip

        docs = await cursor_to_list(db_table.find(**find_kwargs))
        total_items = await safe_count(db_table, query_filter=query_filter)

        duration = time.perf_counter() - start_time
        ASTRA_DB_QUERY_DURATION_SECONDS.labels(operation="find").observe(duration)
        span.set_attribute("duration_ms", int(duration * 1000))
        span.set_attribute("result_count", total_items)

    return [Video.model_validate(d) for d in docs], total_items


async def list_videos_by_category(
    category: str,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Video], int]:
    query_filter = {"category": category.strip().lower(), "isPublished": True}
    return await list_videos_with_query(query_filter, page, page_size, db_table=db_table)


async def list_trending_videos(
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Video], int]:
    """Published videos ordered by view count, most viewed first."""

    return await list_videos_with_query(
        {"isPublished": True},
        page,
        page_size,
        sort_options={"views": -1},
        db_table=db_table,
    )
