from typing import Any, List, TypeVar, Generic, Optional
from uuid import UUID

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")

# ---------------------------------------------------------------------------
# Universal ID aliases used across the domain models
# ---------------------------------------------------------------------------
UserID = UUID
VideoID = UUID
CommentID = UUID
TweetID = UUID
PlaylistID = UUID
SubscriptionID = UUID
LikeID = UUID

__all__ = [
    "ApiResponse",
    "ApiErrorResponse",
    "Pagination",
    "PaginatedResponse",
    "build_page",
    "UserID",
    "VideoID",
    "CommentID",
    "TweetID",
    "PlaylistID",
    "SubscriptionID",
    "LikeID",
]


class ApiResponse(BaseModel, Generic[DataT]):
    """Uniform success envelope returned by every route."""

    statusCode: int = 200
    data: DataT
    message: str = "Success"
    success: bool = True


class ApiErrorResponse(BaseModel):
    """Uniform error envelope rendered by the exception handlers."""

    statusCode: int
    message: str
    success: bool = False
    errors: List[Any] = Field(default_factory=list)
    instance: Optional[str] = None


class Pagination(BaseModel):
    currentPage: int
    pageSize: int
    totalItems: int
    totalPages: int


class PaginatedResponse(BaseModel, Generic[DataT]):
    items: List[DataT]
    pagination: Pagination


def build_page(
    items: List[Any], total_items: int, page: int, page_size: int
) -> PaginatedResponse:
    total_pages = (total_items + page_size - 1) // page_size
    return PaginatedResponse(
        items=items,
        pagination=Pagination(
            currentPage=page,
            pageSize=page_size,
            totalItems=total_items,
            totalPages=total_pages,
        ),
    )
