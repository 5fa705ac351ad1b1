"""Likes on videos, comments and tweets.

A like is one document per (target, user).  Liking twice removes the like.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.models.common import UserID
from vidshare.models.like import Like, LikeTargetEnum, LikeToggleResponse
from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

logger = logging.getLogger(__name__)

LIKES_TABLE_NAME = "likes"
VIDEOS_TABLE_NAME = "videos"

TARGET_TABLE_NAMES: Dict[LikeTargetEnum, str] = {
    LikeTargetEnum.VIDEO: VIDEOS_TABLE_NAME,
    LikeTargetEnum.COMMENT: "comments",
    LikeTargetEnum.TWEET: "tweets",
}


async def toggle_like(
    target_type: LikeTargetEnum,
    target_id: UUID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
    target_table: Optional[AstraDBCollection] = None,
) -> LikeToggleResponse:
    if target_table is None:
        target_table = await get_table(TARGET_TABLE_NAMES[target_type])

    target = await target_table.find_one(
        filter={"_id": str(target_id)}, projection={"_id": True}
    )
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{target_type.value.capitalize()} not found",
        )

    if db_table is None:
        db_table = await get_table(LIKES_TABLE_NAME)

    query_filter = {
        "targetType": target_type.value,
        "targetId": str(target_id),
        "likedBy": str(current_user.id),
    }
    existing = await db_table.find_one(filter=query_filter)
    if existing:
        await db_table.delete_one(filter={"_id": existing["_id"]})
        return LikeToggleResponse(targetType=target_type, targetId=target_id, isLiked=False)

    like = Like(
        id=uuid4(), targetType=target_type, targetId=target_id, likedBy=current_user.id
    )
    doc = serialize_doc(like.model_dump(by_alias=True))
    doc["targetType"] = target_type.value
    await db_table.insert_one(document=doc)
    return LikeToggleResponse(targetType=target_type, targetId=target_id, isLiked=True)


async def list_liked_videos(
    user_id: UserID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
    videos_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Video], int]:
    """Videos liked by *user_id*, most recently liked first.

    Likes whose video has since been deleted are skipped but still counted.
    """

    if db_table is None:
        db_table = await get_table(LIKES_TABLE_NAME)
    if videos_table is None:
        videos_table = await get_table(VIDEOS_TABLE_NAME)

    query_filter = {"targetType": LikeTargetEnum.VIDEO.value, "likedBy": str(user_id)}
    find_kwargs: Dict[str, Any] = {
        "filter": query_filter,
        "limit": page_size,
        "sort": {"createdAt": -1},
    }
    skip = (page - 1) * page_size
    if skip > 0:
        find_kwargs["skip"] = skip

    likes = await cursor_to_list(db_table.find(**find_kwargs))
    total = await safe_count(db_table, query_filter=query_filter)
    if not likes:
        return [], total

    video_ids = [like["targetId"] for like in likes]
    video_docs = await cursor_to_list(
        videos_table.find(filter={"_id": {"$in": video_ids}}, limit=len(video_ids))
    )
    by_id = {d["_id"]: d for d in video_docs}
    videos = [Video.model_validate(by_id[vid]) for vid in video_ids if vid in by_id]
    return videos, total
