"""Pydantic models representing Video domain entities.

These models are kept free of persistence-layer details so they can be
re-used both by service logic and by FastAPI response / request models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from vidshare.models.common import UserID, VideoID


class VideoOwner(BaseModel):
    """Subset of the owner's profile embedded in video details."""

    model_config = ConfigDict(populate_by_name=True)

    id: UserID = Field(..., alias="_id")
    username: str
    avatar: Optional[str] = None


class Video(BaseModel):
    """Canonical representation of a video document."""

    model_config = ConfigDict(populate_by_name=True)

    id: VideoID = Field(..., alias="_id")
    videoFile: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = Field(0, ge=0)
    views: int = Field(0, ge=0)
    isPublished: bool = True
    category: Optional[str] = None
    owner: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updatedAt: Optional[datetime] = None

    @property
    def videoid(self) -> VideoID:
        return self.id


class VideoDetail(Video):
    """Response model for a single video, with the owner's profile attached."""

    ownerDetails: Optional[VideoOwner] = None


class VideoUpdateRequest(BaseModel):
    """Partial update of an owned video.  Unset fields are left untouched."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = Field(default=None, max_length=5000)
    isPublished: Optional[bool] = None
    category: Optional[str] = Field(default=None, max_length=50)

    @field_validator("title", "description", "category")
    @classmethod
    def _reject_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value


class WatchRecorded(BaseModel):
    videoId: VideoID
    views: int
    watchedAt: datetime


__all__ = [
    "VideoOwner",
    "Video",
    "VideoDetail",
    "VideoUpdateRequest",
    "WatchRecorded",
]
