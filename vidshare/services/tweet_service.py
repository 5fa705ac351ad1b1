"""Short text posts published on a user's channel."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException, status

from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.models.common import TweetID, UserID
from vidshare.models.tweet import Tweet, TweetCreateRequest, TweetUpdateRequest
from vidshare.models.user import User
from vidshare.utils.db_helpers import cursor_to_list, safe_count, serialize_doc

TWEETS_TABLE_NAME = "tweets"


async def create_tweet(
    request: TweetCreateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Tweet:
    if db_table is None:
        db_table = await get_table(TWEETS_TABLE_NAME)

    tweet = Tweet(id=uuid4(), content=request.content, owner=current_user.id)
    await db_table.insert_one(document=serialize_doc(tweet.model_dump(by_alias=True)))
    return tweet


async def list_user_tweets(
    user_id: UserID,
    page: int,
    page_size: int,
    db_table: Optional[AstraDBCollection] = None,
) -> Tuple[List[Tweet], int]:
    if db_table is None:
        db_table = await get_table(TWEETS_TABLE_NAME)

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
    return [Tweet.model_validate(d) for d in docs], total


async def _get_owned_tweet(
    tweet_id: TweetID, current_user: User, db_table: AstraDBCollection
) -> Tweet:
    doc = await db_table.find_one(filter={"_id": str(tweet_id)})
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tweet not found")

    tweet = Tweet.model_validate(doc)
    if tweet.owner != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can modify this tweet",
        )
    return tweet


async def update_tweet(
    tweet_id: TweetID,
    request: TweetUpdateRequest,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> Tweet:
    if db_table is None:
        db_table = await get_table(TWEETS_TABLE_NAME)

    tweet = await _get_owned_tweet(tweet_id, current_user, db_table)
    now = datetime.now(timezone.utc)
    await db_table.update_one(
        filter={"_id": str(tweet_id)},
        update={"$set": {"content": request.content, "updatedAt": now.isoformat()}},
    )
    return tweet.model_copy(update={"content": request.content, "updatedAt": now})


async def delete_tweet(
    tweet_id: TweetID,
    current_user: User,
    db_table: Optional[AstraDBCollection] = None,
) -> None:
    if db_table is None:
        db_table = await get_table(TWEETS_TABLE_NAME)

    await _get_owned_tweet(tweet_id, current_user, db_table)
    await db_table.delete_one(filter={"_id": str(tweet_id)})
