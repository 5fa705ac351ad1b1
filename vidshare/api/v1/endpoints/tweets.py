from fastapi import APIRouter, status

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.common import ApiResponse, PaginatedResponse, TweetID, UserID, build_page
from vidshare.models.tweet import Tweet, TweetCreateRequest, TweetUpdateRequest
from vidshare.services import tweet_service

router = APIRouter(prefix="/tweet", tags=["Tweets"])


@router.post(
    "",
    response_model=ApiResponse[Tweet],
    status_code=status.HTTP_201_CREATED,
    summary="Post a tweet",
)
async def create_tweet(payload: TweetCreateRequest, current_user: CurrentUser):
    tweet = await tweet_service.create_tweet(payload, current_user)
    return ApiResponse(
        statusCode=status.HTTP_201_CREATED, data=tweet, message="Tweet created"
    )


@router.get(
    "/user/{userId}",
    response_model=ApiResponse[PaginatedResponse[Tweet]],
    summary="Tweets by a user, newest first",
)
async def list_user_tweets(
    userId: UserID, current_user: CurrentUser, pagination: common_pagination_params
):
    tweets, total = await tweet_service.list_user_tweets(
        userId, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(tweets, total, pagination.page, pagination.pageSize),
        message="Tweets fetched successfully",
    )


@router.patch("/{tweetId}", response_model=ApiResponse[Tweet], summary="Edit own tweet")
async def update_tweet(
    tweetId: TweetID, payload: TweetUpdateRequest, current_user: CurrentUser
):
    tweet = await tweet_service.update_tweet(tweetId, payload, current_user)
    return ApiResponse(data=tweet, message="Tweet updated")


@router.delete(
    "/{tweetId}", response_model=ApiResponse[dict], summary="Delete own tweet"
)
async def delete_tweet(tweetId: TweetID, current_user: CurrentUser):
    await tweet_service.delete_tweet(tweetId, current_user)
    return ApiResponse(data={}, message="Tweet deleted")
