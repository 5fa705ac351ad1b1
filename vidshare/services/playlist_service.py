"""Service layer for user playlists."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException, status

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.models.common import PlaylistID, UserID, VideoID
from vidshare.models.playlist import Playlist, PlaylistCreateRequest, PlaylistUpdateRequest
from vidshare.models.user import User
from vidshare.services import video_service
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

logger = logging.getLogger(__name__)

PLAYLISTS_TABLE_NAME = "playlists"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def create_playlist(
    request: PlaylistCreateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Playlist:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    playlist = Playlist(
        id=uuid4(),
        name=request.name.strip(),
        description=request.description,
        owner=current_user.id,
    )
    await db_table.insert_one(document=serialize_doc(playlist.model_dump(by_alias=True)))
    return playlist


async def get_playlist_by_id(
    playlist_id: PlaylistID, db_table: Optional[AstraDBCollection] = None
) -> Playlist:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    doc = await db_table.find_one(filter={"_id": str(playlist_id)})
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Playlist not found")
    return Playlist.model_validate(doc)


async def list_user_playlists(
    user_id: UserID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Playlist], int]:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    query_filter = {"owner": str(user_id)}
    find_kwargs: Dict[str, Any] = {
        "filter": query_filter,
        "limit": page_size,
        "sort": {"createdAt": -1},
    }
    skip = (page - 1) * page_size
    if skip > 0:
        find_kwargs["skip"] = skip

    docs = await cursor_to_list(db_table.find(**find_kwargs))
    total = await safe_count(db_table, query_filter=query_filter)
    return [Playlist.model_validate(d) for d in docs], total


async def _get_owned_playlist(
    playlist_id: PlaylistID, current_user: User, db_table: AstraDBCollection
) -> Playlist:
    playlist = await get_playlist_by_id(playlist_id, db_table=db_table)
    if playlist.owner != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owner can modify this playlist",
        )
    return playlist


async def update_playlist(
    playlist_id: PlaylistID,
    request: PlaylistUpdateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Playlist:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    await _get_owned_playlist(playlist_id, current_user, db_table)

    update_fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if not update_fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one of name or description is required",
        )
    update_fields["updatedAt"] = _now_iso()

    await db_table.update_one(
        filter={"_id": str(playlist_id)}, update={"$set": update_fields}
    )
    return await get_playlist_by_id(playlist_id, db_table=db_table)


async def delete_playlist(
    playlist_id: PlaylistID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    await _get_owned_playlist(playlist_id, current_user, db_table)
    await db_table.delete_one(filter={"_id": str(playlist_id)})


async def add_video_to_playlist(
    playlist_id: PlaylistID,
    video_id: VideoID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
    videos_table: Optional[AstraDBCollection] = None,
) -> Playlist:
    """Add *video_id* to an owned playlist.  Adding a present video is a no-op."""

    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    await _get_owned_playlist(playlist_id, current_user, db_table)

    video = await video_service.get_video_by_id(video_id, db_table=videos_table)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    await db_table.update_one(
        filter={"_id": str(playlist_id)},
        update={
            "$addToSet": {"videos": str(video_id)},
            "$set": {"updatedAt": _now_iso()},
        },
    )
    return await get_playlist_by_id(playlist_id, db_table=db_table)


async def remove_video_from_playlist(
    playlist_id: PlaylistID,
    video_id: VideoID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Playlist:
    if db_table is None:
        db_table = await get_table(PLAYLISTS_TABLE_NAME)

    playlist = await _get_owned_playlist(playlist_id, current_user, db_table)
    if video_id not in playlist.videos:
        return playlist

    remaining = [str(v) for v in playlist.videos if v != video_id]
    await db_table.update_one(
        filter={"_id": str(playlist_id)},
        update={"$set": {"videos": remaining, "updatedAt": _now_iso()}},
    )
    return await get_playlist_by_id(playlist_id, db_table=db_table)
