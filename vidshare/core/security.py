from datetime import datetime, timedelta, timezone
from typing import Union, Optional, Any

import bcrypt
from jose import jwt
from pydantic import BaseModel

from vidshare.core.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenPayload(BaseModel):
    sub: Optional[Union[str, Any]] = None
    type: str = ACCESS_TOKEN_TYPE
    username: Optional[str] = None
    exp: Optional[datetime] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def _encode(payload: TokenPayload, secret: str) -> str:
    return jwt.encode(
        payload.model_dump(exclude_none=True), secret, algorithm=settings.ALGORITHM
    )


def create_access_token(
    subject: Union[str, Any],
    username: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    payload = TokenPayload(
        sub=str(subject), type=ACCESS_TOKEN_TYPE, username=username, exp=expire
    )
    return _encode(payload, settings.ACCESS_TOKEN_SECRET)


def create_refresh_token(
    subject: Union[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    expire = datetime.now(timezone.utc) + expires_delta

    payload = TokenPayload(sub=str(subject), type=REFRESH_TOKEN_TYPE, exp=expire)
    return _encode(payload, settings.REFRESH_TOKEN_SECRET)


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> TokenPayload:
    """Decode and validate *token*.

    Raises ``jose.JWTError`` (including ``ExpiredSignatureError``) when the
    signature or expiry is invalid and ``ValueError`` when a token of the wrong
    type is presented.
    """

    secret = (
        settings.REFRESH_TOKEN_SECRET
        if token_type == REFRESH_TOKEN_TYPE
        else settings.ACCESS_TOKEN_SECRET
    )
    payload = TokenPayload(**jwt.decode(token, secret, algorithms=[settings.ALGORITHM]))
    if payload.type != token_type:
        raise ValueError(f"Expected a {token_type} token, got {payload.type}")
    return payload
