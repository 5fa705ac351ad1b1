"""Accounts, credentials, tokens, channel profiles and watch history."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from astrapy.constants import ReturnDocument
from fastapi import HTTPException, status
from jose import JWTError

from vidshare.core.config import settings
from vidshare.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.external_services.media_upload import MediaUploader, get_media_uploader
from vidshare.models.common import UserID, VideoID
from vidshare.models.user import (
    AccountUpdateRequest,
    ChangePasswordRequest,
    ChannelProfile,
    TokenPair,
    User,
    UserInDB,
    UserLoginRequest,
    UserLoginResponse,
    UserRegisterRequest,
    WatchHistoryEntry,
)
from vidshare.models.video import Video
from vidshare.utils.db_helpers import (
    cursor_to_list,
    iter_docs_by_ids,
    safe_count,
    serialize_doc,
)

logger = logging.getLogger(__name__)

USERS_TABLE_NAME: str = "users"
SUBSCRIPTIONS_TABLE_NAME: str = "subscriptions"
VIDEOS_TABLE_NAME: str = "videos"

# Stored fields that must never leave the service layer.
_PRIVATE_FIELDS = {"password": False, "refreshToken": False, "watchHistory": False}

IMAGE_FIELDS = ("avatar", "coverImage")


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _users(db_table: Optional[AstraDBCollection]) -> AstraDBCollection:
    return db_table if db_table is not None else await get_table(USERS_TABLE_NAME)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_user_by_id(
    user_id: UserID, db_table: Optional[AstraDBCollection] = None
) -> Optional[User]:
    table = await _users(db_table)
    doc = await table.find_one(filter={"_id": str(user_id)}, projection=_PRIVATE_FIELDS)
    if not doc:
        return None
    return User.model_validate(doc)


async def get_user_in_db_by_id(
    user_id: UserID, db_table: Optional[AstraDBCollection] = None
) -> Optional[UserInDB]:
    table = await _users(db_table)
    doc = await table.find_one(filter={"_id": str(user_id)})
    if not doc:
        return None
    return UserInDB.model_validate(doc)


async def get_user_by_username(
    username: str, db_table: Optional[AstraDBCollection] = None
) -> Optional[User]:
    table = await _users(db_table)
    doc = await table.find_one(
        filter={"username": username.strip().lower()}, projection=_PRIVATE_FIELDS
    )
    if not doc:
        return None
    return User.model_validate(doc)


async def get_users_by_ids(
    user_ids: List[UUID],
    db_table: Optional[AstraDBCollection] = None,
) -> Dict[UUID, User]:
    """Return a mapping {user_id -> User} for the supplied IDs."""

    if not user_ids:
        return {}

    ids_str: List[str] = list({str(u) for u in user_ids})
    table = await _users(db_table)

    cursor = table.find(
        filter={"_id": {"$in": ids_str}},
        projection=_PRIVATE_FIELDS,
        limit=len(ids_str),
    )
    docs = await cursor_to_list(cursor)
    users = [User.model_validate(d) for d in docs]
    return {u.id: u for u in users}


# ---------------------------------------------------------------------------
# Registration & authentication
# ---------------------------------------------------------------------------


async def register_user(
    request: UserRegisterRequest, db_table: Optional[AstraDBCollection] = None
) -> User:
    table = await _users(db_table)

    existing = await table.find_one(
        filter={"$or": [{"username": request.username}, {"email": request.email}]}
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with email or username already exists",
        )

    user = UserInDB(
        id=uuid4(),
        username=request.username,
        email=request.email,
        fullName=request.fullName,
        password=get_password_hash(request.password),
    )
    await table.insert_one(document=serialize_doc(user.model_dump(by_alias=True)))

    logger.info("Registered user %s (%s)", user.username, user.id)
    return user.to_public()


async def authenticate_user(
    request: UserLoginRequest, db_table: Optional[AstraDBCollection] = None
) -> UserInDB:
    table = await _users(db_table)

    query_filter: Dict[str, Any] = (
        {"username": request.username.strip().lower()}
        if request.username
        else {"email": request.email}
    )
    doc = await table.find_one(filter=query_filter)
    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User does not exist"
        )

    user = UserInDB.model_validate(doc)
    if not verify_password(request.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user credentials",
        )
    return user


async def issue_tokens(
    user: User, db_table: Optional[AstraDBCollection] = None
) -> TokenPair:
    """Mint a fresh token pair and remember the refresh token on the user."""

    table = await _users(db_table)

    access_token = create_access_token(subject=user.id, username=user.username)
    refresh_token = create_refresh_token(subject=user.id)

    await table.update_one(
        filter={"_id": str(user.id)},
        update={"$set": {"refreshToken": refresh_token}},
    )
    return TokenPair(accessToken=access_token, refreshToken=refresh_token)


async def login(
    request: UserLoginRequest, db_table: Optional[AstraDBCollection] = None
) -> UserLoginResponse:
    table = await _users(db_table)
    user = await authenticate_user(request, db_table=table)
    tokens = await issue_tokens(user, db_table=table)
    logger.info("User %s logged in", user.id)
    return UserLoginResponse(
        accessToken=tokens.accessToken,
        refreshToken=tokens.refreshToken,
        user=user.to_public(),
    )


async def logout(user_id: UserID, db_table: Optional[AstraDBCollection] = None) -> None:
    table = await _users(db_table)
    await table.update_one(
        filter={"_id": str(user_id)},
        update={"$unset": {"refreshToken": ""}},
    )


async def refresh_tokens(
    refresh_token: Optional[str], db_table: Optional[AstraDBCollection] = None
) -> TokenPair:
    """Exchange a stored refresh token for a new pair (the old one is revoked)."""

    if not refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized request"
        )

    try:
        payload = decode_token(refresh_token, token_type=REFRESH_TOKEN_TYPE)
        user_id = UUID(str(payload.sub))
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token"
        )

    table = await _users(db_table)
    user = await get_user_in_db_by_id(user_id, db_table=table)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token"
        )
    if user.refreshToken != refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is expired or used",
        )

    return await issue_tokens(user, db_table=table)


# ---------------------------------------------------------------------------
# Account maintenance
# ---------------------------------------------------------------------------


async def change_password(
    user_id: UserID,
    request: ChangePasswordRequest,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    table = await _users(db_table)
    user = await get_user_in_db_by_id(user_id, db_table=table)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not verify_password(request.oldPassword, user.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid old password"
        )

    await table.update_one(
        filter={"_id": str(user_id)},
        update={
            "$set": {
                "password": get_password_hash(request.newPassword),
                "updatedAt": _now().isoformat(),
            }
        },
    )


async def update_account(
    user_id: UserID,
    request: AccountUpdateRequest,
    db_table: Optional[AstraDBCollection] = None,
) -> User:
    table = await _users(db_table)

    update_fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if not update_fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one of fullName or email is required",
        )

    if "email" in update_fields:
        clash = await table.find_one(
            filter={"email": update_fields["email"], "_id": {"$ne": str(user_id)}}
        )
        if clash:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Email is already in use"
            )

    update_fields["updatedAt"] = _now()
    await table.update_one(
        filter={"_id": str(user_id)}, update={"$set": serialize_doc(update_fields)}
    )

    updated = await get_user_by_id(user_id, db_table=table)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return updated


async def update_user_image(
    user_id: UserID,
    field: str,
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
    uploader: Optional[MediaUploader] = None,
    db_table: Optional[AstraDBCollection] = None,
) -> User:
    """Upload a new avatar or cover image and point the profile at it."""

    if field not in IMAGE_FIELDS:
        raise ValueError(f"Unsupported image field '{field}'")
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} file is missing"
        )
    if content_type and not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be an image"
        )

    uploader = uploader or get_media_uploader()
    media = await uploader.upload(filename, content, content_type)

    table = await _users(db_table)
    await table.update_one(
        filter={"_id": str(user_id)},
        update={"$set": {field: media.url, "updatedAt": _now().isoformat()}},
    )

    updated = await get_user_by_id(user_id, db_table=table)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return updated


# ---------------------------------------------------------------------------
# Channel profile
# ---------------------------------------------------------------------------


async def get_channel_profile(
    username: str,
    viewer_id: Optional[UserID] = None,
    users_table: Optional[AstraDBCollection] = None,
    subscriptions_table: Optional[AstraDBCollection] = None,
) -> ChannelProfile:
    if not username or not username.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="username is missing"
        )

    channel = await get_user_by_username(username, db_table=users_table)
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Channel does not exist"
        )

    if subscriptions_table is None:
        subscriptions_table = await get_table(SUBSCRIPTIONS_TABLE_NAME)

    channel_id = str(channel.id)
    subscribers = await safe_count(
        subscriptions_table, query_filter={"channel": channel_id}
    )
    subscribed_to = await safe_count(
        subscriptions_table, query_filter={"subscriber": channel_id}
    )

    is_subscribed = False
    if viewer_id is not None:
        is_subscribed = (
            await subscriptions_table.find_one(
                filter={"channel": channel_id, "subscriber": str(viewer_id)}
            )
            is not None
        )

    return ChannelProfile(
        id=channel.id,
        username=channel.username,
        fullName=channel.fullName,
        email=channel.email,
        avatar=channel.avatar,
        coverImage=channel.coverImage,
        subscribersCount=subscribers,
        channelsSubscribedToCount=subscribed_to,
        isSubscribed=is_subscribed,
    )


# ---------------------------------------------------------------------------
# Watch history
# ---------------------------------------------------------------------------


async def append_watch_history(
    user_id: UserID,
    video_id: VideoID,
    watched_at: Optional[datetime] = None,
    db_table: Optional[AstraDBCollection] = None,
) -> WatchHistoryEntry:
    """Append one view, keeping at most ``WATCH_HISTORY_MAX_ENTRIES`` entries.

    Once the cap is exceeded the oldest appended entries are dropped.
    """

    table = await _users(db_table)
    entry = WatchHistoryEntry(videoId=video_id, watchedAt=watched_at or _now())
    doc = await table.find_one_and_update(
        filter={"_id": str(user_id)},
        update={"$push": {"watchHistory": serialize_doc(entry.model_dump())}},
        projection={"watchHistory": True},
        return_document=ReturnDocument.AFTER,
    )

    history = (doc or {}).get("watchHistory") or []
    max_entries = settings.WATCH_HISTORY_MAX_ENTRIES
    if isinstance(history, list) and len(history) > max_entries:
        logger.debug(
            "Trimming watch history of user %s from %d to %d entries",
            user_id,
            len(history),
            max_entries,
        )
        await table.update_one(
            filter={"_id": str(user_id)},
            update={"$set": {"watchHistory": history[-max_entries:]}},
        )
    return entry


async def get_watch_history(
    user_id: UserID,
    users_table: Optional[AstraDBCollection] = None,
    videos_table: Optional[AstraDBCollection] = None,
) -> List[Video]:
    """Return the distinct videos the user watched, most recent first."""

    table = await _users(users_table)
    doc = await table.find_one(
        filter={"_id": str(user_id)}, projection={"watchHistory": True}
    )
    if not doc or not doc.get("watchHistory"):
        return []

    entries = sorted(
        (WatchHistoryEntry.model_validate(e) for e in doc["watchHistory"]),
        key=lambda e: e.watchedAt,
        reverse=True,
    )
    ordered_ids: List[UUID] = list(dict.fromkeys(e.videoId for e in entries))

    if videos_table is None:
        videos_table = await get_table(VIDEOS_TABLE_NAME)
    videos: Dict[UUID, Video] = {}
    async for _, docs in iter_docs_by_ids(videos_table, ordered_ids):
        for d in docs:
            video = Video.model_validate(d)
            videos[video.id] = video

    return [videos[vid] for vid in ordered_ids if vid in videos]
