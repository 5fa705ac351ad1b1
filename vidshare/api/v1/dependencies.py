from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from pydantic import ValidationError

from vidshare.core.config import settings
from vidshare.core.security import ACCESS_TOKEN_TYPE, TokenPayload, decode_token
from vidshare.models.user import User
from vidshare.services import user_service

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/users/login",
    auto_error=False,  # Handle missing token manually for clearer error
)


async def get_access_token(
    request: Request,
    bearer_token: Annotated[Optional[str], Depends(reusable_oauth2)],
) -> Optional[str]:
    """Access token from the ``Authorization`` header, else the cookie."""

    return bearer_token or request.cookies.get(ACCESS_TOKEN_COOKIE)


async def get_current_user_token_payload(
    token: Annotated[Optional[str], Depends(get_access_token)],
) -> TokenPayload:
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )

    try:
        token_data = decode_token(token, token_type=ACCESS_TOKEN_TYPE)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (JWTError, ValidationError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_data


async def get_current_user(
    payload: Annotated[TokenPayload, Depends(get_current_user_token_payload)],
) -> User:
    if payload.sub is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Subject missing",
        )

    try:
        user_id = UUID(str(payload.sub))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Subject is not a valid UUID",
        )

    user = await user_service.get_user_by_id(user_id=user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid access token"
        )
    return user


async def get_current_user_optional(
    token: Annotated[Optional[str], Depends(get_access_token)],
) -> Optional[User]:
    """Return User if valid token provided, otherwise None (no error)."""

    if token is None:
        return None

    try:
        token_data = decode_token(token, token_type=ACCESS_TOKEN_TYPE)
        user_id = UUID(str(token_data.sub))
    except (JWTError, ValidationError, ValueError):
        return None

    return await user_service.get_user_by_id(user_id=user_id)


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]

# ---------------------------------------------------------------------------
# Pagination helper
# ---------------------------------------------------------------------------


class PaginationParams:
    """Common pagination parameters.

    FastAPI will resolve this via dependency injection allowing endpoints to
    accept `page` and `pageSize` query parameters.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        pageSize: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description="Items per page",
        ),
    ) -> None:
        self.page = page
        self.pageSize = pageSize


common_pagination_params = Annotated[PaginationParams, Depends()]
