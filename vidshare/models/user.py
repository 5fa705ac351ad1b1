from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator, model_validator

from vidshare.models.common import UserID, VideoID


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WatchHistoryEntry(BaseModel):
    """One playback of a video by a user.  Only ``watchedAt`` ordering matters."""

    videoId: VideoID
    watchedAt: datetime = Field(default_factory=_now)


class UserBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    fullName: str = Field(..., min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def _normalise_username(cls, value: str) -> str:
        value = value.strip().lower()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("username must be a single non-blank word")
        return value


class UserRegisterRequest(UserBase):
    password: str = Field(..., min_length=8)


class User(UserBase):
    """Public representation of an account (never carries secrets)."""

    model_config = ConfigDict(populate_by_name=True)

    id: UserID = Field(..., alias="_id")
    avatar: Optional[str] = None
    coverImage: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: Optional[datetime] = None

    @property
    def userid(self) -> UUID:
        return self.id


class UserInDB(User):
    """Full stored document, including credentials and history."""

    password: str
    refreshToken: Optional[str] = None
    watchHistory: List[WatchHistoryEntry] = Field(default_factory=list)

    def to_public(self) -> User:
        return User.model_validate(
            self.model_dump(
                by_alias=True, exclude={"password", "refreshToken", "watchHistory"}
            )
        )


class UserLoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _require_identifier(self):
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str


class UserLoginResponse(TokenPair):
    user: User


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    oldPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=8)


class AccountUpdateRequest(BaseModel):
    fullName: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class ChannelProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UserID = Field(..., alias="_id")
    username: str
    fullName: str
    email: EmailStr
    avatar: Optional[str] = None
    coverImage: Optional[str] = None
    subscribersCount: int = 0
    channelsSubscribedToCount: int = 0
    isSubscribed: bool = False


__all__ = [
    "WatchHistoryEntry",
    "UserBase",
    "UserRegisterRequest",
    "User",
    "UserInDB",
    "UserLoginRequest",
    "TokenPair",
    "UserLoginResponse",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "AccountUpdateRequest",
    "ChannelProfile",
]
