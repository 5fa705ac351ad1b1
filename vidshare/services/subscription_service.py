"""Service layer for channel subscriptions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.models.common import UserID
from vidshare.models.subscription import Subscription, SubscriptionToggleResponse
from vidshare.models.user import User
from vidshare.services import user_service
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE_NAME = "subscriptions"


async def toggle_subscription(
    channel_id: UserID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> SubscriptionToggleResponse:
    """Subscribe the caller to *channel_id*, or unsubscribe if already subscribed."""

    if channel_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot subscribe to your own channel",
        )

    channel = await user_service.get_user_by_id(channel_id, db_table=users_table)
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Channel does not exist"
        )

    if db_table is None:
        db_table = await get_table(SUBSCRIPTIONS_TABLE_NAME)

    query_filter = {"channel": str(channel_id), "subscriber": str(current_user.id)}
    existing = await db_table.find_one(filter=query_filter)

    if existing:
        await db_table.delete_one(filter={"_id": existing["_id"]})
        logger.info("User %s unsubscribed from %s", current_user.id, channel_id)
        return SubscriptionToggleResponse(channelId=channel_id, isSubscribed=False)

    subscription = Subscription(
        id=uuid4(), subscriber=current_user.id, channel=channel_id
    )
    await db_table.insert_one(document=serialize_doc(subscription.model_dump(by_alias=True)))
    logger.info("User %s subscribed to %s", current_user.id, channel_id)
    return SubscriptionToggleResponse(channelId=channel_id, isSubscribed=True)


async def _list_related_users(
    query_filter: Dict[str, Any],
    related_field: str,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection],
    users_table: Optional[AstraDBCollection],
) -> Tuple[List[User], int]:
    if db_table is None:
        db_table = await get_table(SUBSCRIPTIONS_TABLE_NAME)

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

    user_ids = [UUID(d[related_field]) for d in docs]
    users = await user_service.get_users_by_ids(user_ids, db_table=users_table)
    return [users[uid] for uid in user_ids if uid in users], total


async def list_channel_subscribers(
    channel_id: UserID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[User], int]:
    return await _list_related_users(
        {"channel": str(channel_id)}, "subscriber", page, page_size, db_table, users_table
    )


async def list_subscribed_channels(
    subscriber_id: UserID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
    users_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[User], int]:
    return await _list_related_users(
        {"subscriber": str(subscriber_id)}, "channel", page, page_size, db_table, users_table
    )
