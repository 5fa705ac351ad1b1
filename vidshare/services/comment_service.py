"""Service layer for managing video comments."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException, status

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.models.comment import (
    Comment,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
)
from vidshare.models.common import CommentID, VideoID
from vidshare.models.user import User
from vidshare.services import user_service, video_service
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

logger = logging.getLogger(__name__)

COMMENTS_TABLE_NAME = "comments"


async def add_comment_to_video(
    video_id: VideoID,
    request: CommentCreateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
    videos_table: Optional[AstraDBCollection] = None,
) -> Comment:
    target_video = await video_service.get_video_by_id(video_id, db_table=videos_table)
    if target_video is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found",
        )

    if db_table is None:
        db_table = await get_table(COMMENTS_TABLE_NAME)

    new_comment = Comment(
        id=uuid4(),
        content=request.content,
        video=video_id,
        owner=current_user.id,
    )
    await db_table.insert_one(document=serialize_doc(new_comment.model_dump(by_alias=True)))
    return new_comment


# ---------------------------------------------------------------------------
# Internal helper – enrich Comment models with author profiles
# ---------------------------------------------------------------------------


async def _enrich_comments_with_owners(
    comments: List[Comment],
    users_table: Optional[AstraDBCollection] = None,
) -> List[CommentResponse]:
    """Return ``CommentResponse`` objects with ownerUsername/ownerAvatar attached."""

    user_mapping = await user_service.get_users_by_ids(
        [c.owner for c in comments], db_table=users_table
    )

    enriched: List[CommentResponse] = []
    for c in comments:
        data = c.model_dump()
        owner = user_mapping.get(c.owner)
        if owner is not None:
            data["ownerUsername"] = owner.username
            data["ownerAvatar"] = owner.avatar
        enriched.append(CommentResponse.model_validate(data))

    return enriched


async def list_comments_for_video(
    video_id: VideoID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[CommentResponse], int]:
    if db_table is None:
        db_table = await get_table(COMMENTS_TABLE_NAME)

    query_filter = {"video": str(video_id)}
    skip = (page - 1) * page_size

    find_kwargs: Dict[str, Any] = {
        "filter": query_filter,
        "limit": page_size,
        "sort": {"createdAt": -1},  # newest first
    }
    if skip > 0:
        find_kwargs["skip"] = skip

    docs = await cursor_to_list(db_table.find(**find_kwargs))
    total = await safe_count(db_table, query_filter=query_filter)

    comment_models = [Comment.model_validate(d) for d in docs]
    enriched = await _enrich_comments_with_owners(comment_models, users_table=users_table)
    return enriched, total


async def _get_owned_comment(
    comment_id: CommentID, current_user: User, db_table: AstraDBCollection
) -> Comment:
    doc = await db_table.find_one(filter={"_id": str(comment_id)})
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

    comment = Comment.model_validate(doc)
    if comment.owner != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can modify this comment",
        )
    return comment


async def update_comment(
    comment_id: CommentID,
    request: CommentUpdateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Comment:
    if db_table is None:
        db_table = await get_table(COMMENTS_TABLE_NAME)

    comment = await _get_owned_comment(comment_id, current_user, db_table)
    now = datetime.now(timezone.utc)
    await db_table.update_one(
        filter={"_id": str(comment_id)},
        update={"$set": {"content": request.content, "updatedAt": now.isoformat()}},
    )
    return comment.model_copy(update={"content": request.content, "updatedAt": now})


async def delete_comment(
    comment_id: CommentID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    if db_table is None:
        db_table = await get_table(COMMENTS_TABLE_NAME)

    await _get_owned_comment(comment_id, current_user, db_table)
    await db_table.delete_one(filter={"_id": str(comment_id)})
    logger.info("Comment %s deleted by %s", comment_id, current_user.id)
