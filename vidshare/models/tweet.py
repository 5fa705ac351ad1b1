"""Pydantic models for short text posts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from vidshare.models.common import TweetID, UserID


class TweetBase(BaseModel):
    content: str = Field(..., min_length=1, max_length=280)


class TweetCreateRequest(TweetBase):
    pass


class TweetUpdateRequest(TweetBase):
    pass


class Tweet(TweetBase):
    model_config = ConfigDict(populate_by_name=True)

    id: TweetID = Field(..., alias="_id")
    owner: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updatedAt: Optional[datetime] = None


__all__ = ["TweetCreateRequest", "TweetUpdateRequest", "Tweet"]
