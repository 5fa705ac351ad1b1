"""Pydantic models for channel subscriptions."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, ConfigDict

from vidshare.models.common import SubscriptionID, UserID


class Subscription(BaseModel):
    """A *subscriber* following a *channel* (both are user ids)."""

    model_config = ConfigDict(populate_by_name=True)

    id: SubscriptionID = Field(..., alias="_id")
    subscriber: UserID
    channel: UserID
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SubscriptionToggleResponse(BaseModel):
    channelId: UserID
    isSubscribed: bool


__all__ = ["Subscription", "SubscriptionToggleResponse"]
