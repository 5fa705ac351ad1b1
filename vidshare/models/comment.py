"""Pydantic models for video comments."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from vidshare.models.common import UserID, VideoID, CommentID


class CommentBase(BaseModel):
    """Fields common to comment creation and storage."""

    content: str = Field(..., min_length=1, max_length=1000)


class CommentCreateRequest(CommentBase):
    pass


class CommentUpdateRequest(CommentBase):
    pass


class Comment(CommentBase):
    """Persistent representation stored in DB and returned via API."""

    model_config = ConfigDict(populate_by_name=True)

    id: CommentID = Field(..., alias="_id")
    video: VideoID
    owner: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updatedAt: Optional[datetime] = None


class CommentResponse(Comment):
    """Comment enriched with the author's public profile."""

    ownerUsername: Optional[str] = None
    ownerAvatar: Optional[str] = None


__all__ = [
    "CommentBase",
    "CommentCreateRequest",
    "CommentUpdateRequest",
    "Comment",
    "CommentResponse",
]
