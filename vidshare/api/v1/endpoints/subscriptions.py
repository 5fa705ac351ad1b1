from fastapi import APIRouter

from vidshare.api.v1.dependencies import CurrentUser, common_pagination_params
from vidshare.models.common import ApiResponse, PaginatedResponse, UserID, build_page
from vidshare.models.subscription import SubscriptionToggleResponse
from vidshare.models.user import User
from vidshare.services import subscription_service

router = APIRouter(prefix="/subscription", tags=["Subscriptions"])


@router.post(
    "/c/{channelId}",
    response_model=ApiResponse[SubscriptionToggleResponse],
    summary="Subscribe to or unsubscribe from a channel",
)
async def toggle_subscription(channelId: UserID, current_user: CurrentUser):
    result = await subscription_service.toggle_subscription(channelId, current_user)
    message = "Subscribed" if result.isSubscribed else "Unsubscribed"
    return ApiResponse(data=result, message=message)


@router.get(
    "/c/{channelId}",
    response_model=ApiResponse[PaginatedResponse[User]],
    summary="Subscribers of a channel",
)
async def list_channel_subscribers(
    channelId: UserID, current_user: CurrentUser, pagination: common_pagination_params
):
    users, total = await subscription_service.list_channel_subscribers(
        channelId, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(users, total, pagination.page, pagination.pageSize),
        message="Subscribers fetched successfully",
    )


@router.get(
    "/u/{subscriberId}",
    response_model=ApiResponse[PaginatedResponse[User]],
    summary="Channels a user subscribes to",
)
async def list_subscribed_channels(
    subscriberId: UserID, current_user: CurrentUser, pagination: common_pagination_params
):
    channels, total = await subscription_service.list_subscribed_channels(
        subscriberId, page=pagination.page, page_size=pagination.pageSize
    )
    return ApiResponse(
        data=build_page(channels, total, pagination.page, pagination.pageSize),
        message="Subscribed channels fetched successfully",
    )
