from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile, status

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.common import ApiResponse, PaginatedResponse, VideoID, build_page
from vidshare.models.recommendation import RecommendedVideo
from vidshare.models.video import Video, VideoDetail, VideoUpdateRequest, WatchRecorded
from vidshare.services import recommendation_service, video_service
from vidshare.services.video_service import UploadedFile

router = APIRouter(prefix="/video", tags=["Videos"])


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    if upload is None:
        return None
    return UploadedFile(
        filename=upload.filename or "upload",
        content=await upload.read(),
        content_type=upload.content_type,
    )


@router.post(
    "",
    response_model=ApiResponse[Video],
    status_code=status.HTTP_201_CREATED,
    summary="Publish a new video",
)
async def publish_video(
    current_user: CurrentUser,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: Optional[float] = Form(None, ge=0),
    isPublished: bool = Form(True),
    category: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
):
    new_video = await video_service.create_video(
        title=title,
        description=description,
        video_file=await _read_upload(video),
        thumbnail=await _read_upload(thumbnail),
        current_user=current_user,
        duration=duration,
        is_published=isPublished,
        category=category,
    )
    return ApiResponse(
        statusCode=status.HTTP_201_CREATED,
        data=new_video,
        message="Video published successfully",
    )


# Fixed paths are declared before ``/{videoId}`` so they are not parsed as ids.


@router.get(
    "/recommended",
    response_model=ApiResponse[PaginatedResponse[RecommendedVideo]],
    summary="Videos recommended from the caller's watch history",
)
async def get_recommended_videos(
    current_user: CurrentUser, pagination: common_pagination_params
):
    candidates, total = await recommendation_service.recommend(
        current_user.id, page=pagination.page, page_size=pagination.pageSize
    )
    items = [RecommendedVideo.from_candidate(c) for c in candidates]
    return ApiResponse(
        data=build_page(items, total, pagination.page, pagination.pageSize),
        message="Recommended videos fetched successfully",
    )


@router.get(
    "/trending",
    response_model=ApiResponse[PaginatedResponse[Video]],
    summary="Most viewed published videos",
)
async def get_trending_videos(pagination: common_pagination_params):
    videos, total = await video_service.list_trending_videos(
        page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(videos, total, pagination.page, pagination.pageSize),
        message="Trending videos fetched successfully",
    )


@router.get(
    "/category/{category}",
    response_model=ApiResponse[PaginatedResponse[Video]],
    summary="Published videos in a category",
)
async def get_videos_by_category(category: str, pagination: common_pagination_params):
    videos, total = await video_service.list_videos_by_category(
        category, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(videos, total, pagination.page, pagination.pageSize),
        message="Videos fetched successfully",
    )


@router.get(
    "/{videoId}", response_model=ApiResponse[VideoDetail], summary="Video details"
)
async def get_video(videoId: VideoID):
    video = await video_service.get_video_detail(videoId)
    return ApiResponse(data=video, message="Video fetched successfully")


@router.patch(
    "/{videoId}", response_model=ApiResponse[Video], summary="Update an owned video"
)
async def update_video(
    videoId: VideoID, payload: VideoUpdateRequest, current_user: CurrentUser
):
    video = await video_service.update_video(videoId, payload, current_user)
    return ApiResponse(data=video, message="Video updated successfully")


@router.delete(
    "/{videoId}", response_model=ApiResponse[dict], summary="Delete an owned video"
)
async def delete_video(videoId: VideoID, current_user: CurrentUser):
    await video_service.delete_video(videoId, current_user)
    return ApiResponse(data={}, message="Video deleted successfully")


@router.post(
    "/{videoId}/watch",
    response_model=ApiResponse[WatchRecorded],
    summary="Record a view and add it to the caller's history",
)
async def watch_video(videoId: VideoID, current_user: CurrentUser):
    recorded = await video_service.record_watch(videoId, current_user)
    return ApiResponse(data=recorded, message="View recorded")
