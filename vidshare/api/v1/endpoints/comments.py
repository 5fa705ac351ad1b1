from fastapi import APIRouter, status

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.comment import (
    Comment,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
)
from vidshare.models.common import (
    ApiResponse,
    CommentID,
    PaginatedResponse,
    VideoID,
    build_page,
)
from vidshare.services import comment_service

router = APIRouter(prefix="/comment", tags=["Comments"])


@router.get(
    "/{videoId}",
    response_model=ApiResponse[PaginatedResponse[CommentResponse]],
    summary="Comments on a video, newest first",
)
async def list_video_comments(videoId: VideoID, pagination: common_pagination_params):
    comments, total = await comment_service.list_comments_for_video(
        videoId, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(comments, total, pagination.page, pagination.pageSize),
        message="Comments fetched successfully",
    )


@router.post(
    "/{videoId}",
    response_model=ApiResponse[Comment],
    status_code=status.HTTP_201_CREATED,
    summary="Add comment to video",
)
async def add_comment(
    videoId: VideoID, payload: CommentCreateRequest, current_user: CurrentUser
):
    comment = await comment_service.add_comment_to_video(videoId, payload, current_user)
    return ApiResponse(
        statusCode=status.HTTP_201_CREATED,
        data=comment,
        message="Comment added successfully",
    )


@router.patch(
    "/c/{commentId}", response_model=ApiResponse[Comment], summary="Edit own comment"
)
async def update_comment(
    commentId: CommentID, payload: CommentUpdateRequest, current_user: CurrentUser
):
    comment = await comment_service.update_comment(commentId, payload, current_user)
    return ApiResponse(data=comment, message="Comment updated successfully")


@router.delete(
    "/c/{commentId}", response_model=ApiResponse[dict], summary="Delete own comment"
)
async def delete_comment(commentId: CommentID, current_user: CurrentUser):
    await comment_service.delete_comment(commentId, current_user)
    return ApiResponse(data={}, message="Comment deleted successfully")
