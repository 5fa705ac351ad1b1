from typing import List, Optional

from fastapi import APIRouter, File, Request, Response, UploadFile, status

from vidshare.api.v1.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    CurrentUser,
)
from vidshare.core.config import settings
from vidshare.models.common import ApiResponse
from vidshare.models.user import (
    AccountUpdateRequest,
    ChangePasswordRequest,
    ChannelProfile,
    RefreshTokenRequest,
    TokenPair,
    User,
    UserLoginRequest,
    UserLoginResponse,
    UserRegisterRequest,
)
from vidshare.models.video import Video
from vidshare.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


def _set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    for key, value in (
        (ACCESS_TOKEN_COOKIE, tokens.accessToken),
        (REFRESH_TOKEN_COOKIE, tokens.refreshToken),
    ):
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax",
        )


@router.post(
    "/register",
    response_model=ApiResponse[User],
    status_code=status.HTTP_201_CREATED,
    summary="Register new account",
)
async def register_user(user_in: UserRegisterRequest):
    user = await user_service.register_user(user_in)
    return ApiResponse(
        statusCode=status.HTTP_201_CREATED,
        data=user,
        message="User registered successfully",
    )


@router.post(
    "/login", response_model=ApiResponse[UserLoginResponse], summary="Login → JWT pair"
)
async def login(credentials: UserLoginRequest, response: Response):
    result = await user_service.login(credentials)
    _set_auth_cookies(response, result)
    return ApiResponse(data=result, message="User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict], summary="Logout")
async def logout(current_user: CurrentUser, response: Response):
    await user_service.logout(current_user.id)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return ApiResponse(data={}, message="User logged out")


@router.post(
    "/refresh-token",
    response_model=ApiResponse[TokenPair],
    summary="Rotate access and refresh tokens",
)
async def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
):
    incoming = request.cookies.get(REFRESH_TOKEN_COOKIE) or (
        body.refreshToken if body is not None else None
    )
    tokens = await user_service.refresh_tokens(incoming)
    _set_auth_cookies(response, tokens)
    return ApiResponse(data=tokens, message="Access token refreshed")


@router.post(
    "/change-password", response_model=ApiResponse[dict], summary="Change password"
)
async def change_password(payload: ChangePasswordRequest, current_user: CurrentUser):
    await user_service.change_password(current_user.id, payload)
    return ApiResponse(data={}, message="Password changed successfully")


@router.get(
    "/current-user", response_model=ApiResponse[User], summary="Current user profile"
)
async def read_current_user(current_user: CurrentUser):
    return ApiResponse(data=current_user, message="Current user fetched successfully")


@router.patch(
    "/update-account", response_model=ApiResponse[User], summary="Update account details"
)
async def update_account(payload: AccountUpdateRequest, current_user: CurrentUser):
    user = await user_service.update_account(current_user.id, payload)
    return ApiResponse(data=user, message="Account details updated successfully")


async def _replace_image(field: str, upload: UploadFile, current_user: User) -> User:
    content = await upload.read()
    return await user_service.update_user_image(
        current_user.id,
        field,
        upload.filename or field,
        content,
        upload.content_type,
    )


@router.patch("/avatar", response_model=ApiResponse[User], summary="Replace avatar")
async def update_avatar(current_user: CurrentUser, avatar: UploadFile = File(...)):
    user = await _replace_image("avatar", avatar, current_user)
    return ApiResponse(data=user, message="Avatar updated successfully")


@router.patch(
    "/cover-image", response_model=ApiResponse[User], summary="Replace cover image"
)
async def update_cover_image(
    current_user: CurrentUser, coverImage: UploadFile = File(...)
):
    user = await _replace_image("coverImage", coverImage, current_user)
    return ApiResponse(data=user, message="Cover image updated successfully")


@router.get(
    "/c/{username}",
    response_model=ApiResponse[ChannelProfile],
    summary="Channel profile",
)
async def get_channel_profile(username: str, current_user: CurrentUser):
    profile = await user_service.get_channel_profile(username, viewer_id=current_user.id)
    return ApiResponse(data=profile, message="User channel fetched successfully")


@router.get(
    "/history", response_model=ApiResponse[List[Video]], summary="Watch history"
)
async def get_watch_history(current_user: CurrentUser):
    videos = await user_service.get_watch_history(current_user.id)
    return ApiResponse(data=videos, message="Watch history fetched successfully")
