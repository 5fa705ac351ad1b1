from uuid import UUID

from fastapi import APIRouter

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.common import ApiResponse, PaginatedResponse, build_page
from vidshare.models.like import LikeTargetEnum, LikeToggleResponse
from vidshare.models.video import Video
from vidshare.services import like_service

router = APIRouter(prefix="/like", tags=["Likes"])


async def _toggle(target_type: LikeTargetEnum, target_id: UUID, current_user):
    result = await like_service.toggle_like(target_type, target_id, current_user)
    message = "Liked" if result.isLiked else "Like removed"
    return ApiResponse(data=result, message=message)


@router.post(
    "/toggle/v/{videoId}",
    response_model=ApiResponse[LikeToggleResponse],
    summary="Like or unlike a video",
)
async def toggle_video_like(videoId: UUID, current_user: CurrentUser):
    return await _toggle(LikeTargetEnum.VIDEO, videoId, current_user)


@router.post(
    "/toggle/c/{commentId}",
    response_model=ApiResponse[LikeToggleResponse],
    summary="Like or unlike a comment",
)
async def toggle_comment_like(commentId: UUID, current_user: CurrentUser):
    return await _toggle(LikeTargetEnum.COMMENT, commentId, current_user)


@router.post(
    "/toggle/t/{tweetId}",
    response_model=ApiResponse[LikeToggleResponse],
    summary="Like or unlike a tweet",
)
async def toggle_tweet_like(tweetId: UUID, current_user: CurrentUser):
    return await _toggle(LikeTargetEnum.TWEET, tweetId, current_user)


@router.get(
    "/videos",
    response_model=ApiResponse[PaginatedResponse[Video]],
    summary="Videos liked by the caller",
)
async def list_liked_videos(current_user: CurrentUser, pagination: common_pagination_params):
    videos, total = await like_service.list_liked_videos(
        current_user.id, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(videos, total, pagination.page, pagination.pageSize),
        message="Liked videos fetched successfully",
    )
