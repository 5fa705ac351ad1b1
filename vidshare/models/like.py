"""Pydantic models for likes on videos, comments and tweets."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from vidshare.models.common import LikeID, UserID


class LikeTargetEnum(str, Enum):
    """Kinds of documents that can be liked – also the stored field name."""

    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class Like(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: LikeID = Field(..., alias="_id")
    targetType: LikeTargetEnum
    targetId: UUID
    likedBy: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LikeToggleResponse(BaseModel):
    targetType: LikeTargetEnum
    targetId: UUID
    isLiked: bool


__all__ = ["LikeTargetEnum", "Like", "LikeToggleResponse"]
