"""Pydantic models for user playlists."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from vidshare.models.common import PlaylistID, UserID, VideoID


class PlaylistCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)


class PlaylistUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class Playlist(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: PlaylistID = Field(..., alias="_id")
    name: str
    description: str = ""
    videos: List[VideoID] = Field(default_factory=list)
    owner: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updatedAt: Optional[datetime] = None


__all__ = ["PlaylistCreateRequest", "PlaylistUpdateRequest", "Playlist"]
