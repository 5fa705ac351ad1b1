from fastapi import APIRouter, status

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.common import (
    ApiResponse,
    PaginatedResponse,
    PlaylistID,
    UserID,
    VideoID,
    build_page,
)
from vidshare.models.playlist import Playlist, PlaylistCreateRequest, PlaylistUpdateRequest
from vidshare.services import playlist_service

router = APIRouter(prefix="/playlist", tags=["Playlists"])


@router.post(
    "",
    response_model=ApiResponse[Playlist],
    status_code=status.HTTP_201_CREATED,
    summary="Create playlist",
)
async def create_playlist(payload: PlaylistCreateRequest, current_user: CurrentUser):
    playlist = await playlist_service.create_playlist(payload, current_user)
    return ApiResponse(
        statusCode=status.HTTP_201_CREATED,
        data=playlist,
        message="Playlist created successfully",
    )


@router.get(
    "/user/{userId}",
    response_model=ApiResponse[PaginatedResponse[Playlist]],
    summary="Playlists owned by a user",
)
async def list_user_playlists(
    userId: UserID, current_user: CurrentUser, pagination: common_pagination_params
):
    playlists, total = await playlist_service.list_user_playlists(
        userId, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(playlists, total, pagination.page, pagination.pageSize),
        message="Playlists fetched successfully",
    )


@router.patch(
    "/add/{videoId}/{playlistId}",
    response_model=ApiResponse[Playlist],
    summary="Add a video to a playlist",
)
async def add_video(videoId: VideoID, playlistId: PlaylistID, current_user: CurrentUser):
    playlist = await playlist_service.add_video_to_playlist(
        playlistId, videoId, current_user
    )
    return ApiResponse(data=playlist, message="Video added to playlist")


@router.patch(
    "/remove/{videoId}/{playlistId}",
    response_model=ApiResponse[Playlist],
    summary="Remove a video from a playlist",
)
async def remove_video(
    videoId: VideoID, playlistId: PlaylistID, current_user: CurrentUser
):
    playlist = await playlist_service.remove_video_from_playlist(
        playlistId, videoId, current_user
    )
    return ApiResponse(data=playlist, message="Video removed from playlist")


@router.get(
    "/{playlistId}", response_model=ApiResponse[Playlist], summary="Playlist by id"
)
async def get_playlist(playlistId: PlaylistID, current_user: CurrentUser):
    playlist = await playlist_service.get_playlist_by_id(playlistId)
    return ApiResponse(data=playlist, message="Playlist fetched successfully")


@router.patch(
    "/{playlistId}", response_model=ApiResponse[Playlist], summary="Update playlist"
)
async def update_playlist(
    playlistId: PlaylistID, payload: PlaylistUpdateRequest, current_user: CurrentUser
):
    playlist = await playlist_service.update_playlist(playlistId, payload, current_user)
    return ApiResponse(data=playlist, message="Playlist updated successfully")


@router.delete(
    "/{playlistId}", response_model=ApiResponse[dict], summary="Delete playlist"
)
async def delete_playlist(playlistId: PlaylistID, current_user: CurrentUser):
    await playlist_service.delete_playlist(playlistId, current_user)
    return ApiResponse(data={}, message="Playlist deleted successfully")
