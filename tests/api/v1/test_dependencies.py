import pytest
from uuid import uuid4, UUID
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from fastapi import HTTPException, status
from jose import jwt
from starlette.requests import Request

from vidshare.core.config import settings
from vidshare.core.security import (
    TokenPayload,
    create_access_token,
    create_refresh_token,
)
from vidshare.models.user import User
from vidshare.api.v1 import dependencies


# --- Fixtures ---
@pytest.fixture
def test_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def valid_token(test_user_id: UUID) -> str:
    return create_access_token(subject=test_user_id, username="alice")


@pytest.fixture
def expired_token(test_user_id: UUID) -> str:
    return create_access_token(subject=test_user_id, expires_delta=timedelta(hours=-1))


@pytest.fixture
def sample_user_model(test_user_id: UUID) -> User:
    return User(
        id=test_user_id,
        username="alice",
        email="alice@example.com",
        fullName="Alice Example",
    )


def _request(cookie: str = "") -> Request:
    headers = [(b"cookie", cookie.encode())] if cookie else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


# --- Token source ---
@pytest.mark.asyncio
async def test_access_token_prefers_bearer_header():
    token = await dependencies.get_access_token(
        _request("accessToken=from-cookie"), bearer_token="from-header"
    )
    assert token == "from-header"


@pytest.mark.asyncio
async def test_access_token_falls_back_to_cookie():
    token = await dependencies.get_access_token(
        _request("accessToken=from-cookie"), bearer_token=None
    )
    assert token == "from-cookie"


@pytest.mark.asyncio
async def test_access_token_absent():
    assert await dependencies.get_access_token(_request(), bearer_token=None) is None


# --- get_current_user_token_payload ---
@pytest.mark.asyncio
async def test_token_payload_valid_token(valid_token: str, test_user_id: UUID):
    payload = await dependencies.get_current_user_token_payload(token=valid_token)
    assert payload.sub == str(test_user_id)
    assert payload.username == "alice"
    assert payload.exp > datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_token_payload_missing_token():
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user_token_payload(token=None)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc_info.value.detail == "Not authenticated"


@pytest.mark.asyncio
async def test_token_payload_expired_token(expired_token: str):
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user_token_payload(token=expired_token)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc_info.value.detail == "Token has expired"


@pytest.mark.asyncio
async def test_token_payload_invalid_signature():
    forged = jwt.encode(
        {"sub": "test", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "WRONG_SECRET",
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user_token_payload(token=forged)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert "Could not validate credentials" in exc_info.value.detail


@pytest.mark.asyncio
async def test_token_payload_rejects_refresh_token(test_user_id: UUID):
    # Signed with the refresh secret, so it fails the access-token signature check.
    refresh = create_refresh_token(subject=test_user_id)
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user_token_payload(token=refresh)
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_token_payload_malformed_token():
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user_token_payload(token="this.is.not.a.jwt")
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert "Could not validate credentials" in exc_info.value.detail


# --- get_current_user ---
@pytest.mark.asyncio
async def test_get_current_user_success(sample_user_model: User):
    payload = TokenPayload(
        sub=str(sample_user_model.id),
        exp=datetime.now(timezone.utc) + timedelta(minutes=15),
    )

    with patch(
        "vidshare.services.user_service.get_user_by_id", new_callable=AsyncMock
    ) as mock_get_user_by_id:
        mock_get_user_by_id.return_value = sample_user_model

        user = await dependencies.get_current_user(payload=payload)

        assert user == sample_user_model
        mock_get_user_by_id.assert_called_once_with(user_id=sample_user_model.id)


@pytest.mark.asyncio
async def test_get_current_user_no_subject():
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user(payload=TokenPayload())
    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc_info.value.detail == "Invalid token: Subject missing"


@pytest.mark.asyncio
async def test_get_current_user_invalid_subject_uuid():
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user(payload=TokenPayload(sub="not-a-uuid"))
    assert exc_info.value.detail == "Invalid token: Subject is not a valid UUID"


@pytest.mark.asyncio
async def test_get_current_user_deleted_account():
    with patch(
        "vidshare.services.user_service.get_user_by_id", new_callable=AsyncMock
    ) as mock_get_user_by_id:
        mock_get_user_by_id.return_value = None

        with pytest.raises(HTTPException) as exc_info:
            await dependencies.get_current_user(payload=TokenPayload(sub=str(uuid4())))

    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc_info.value.detail == "Invalid access token"


# --- get_current_user_optional ---
@pytest.mark.asyncio
async def test_optional_user_without_token():
    assert await dependencies.get_current_user_optional(token=None) is None


@pytest.mark.asyncio
async def test_optional_user_with_garbage_token():
    assert await dependencies.get_current_user_optional(token="garbage") is None


@pytest.mark.asyncio
async def test_optional_user_with_valid_token(valid_token: str, sample_user_model: User):
    with patch(
        "vidshare.services.user_service.get_user_by_id", new_callable=AsyncMock
    ) as mock_get_user_by_id:
        mock_get_user_by_id.return_value = sample_user_model
        user = await dependencies.get_current_user_optional(token=valid_token)

    assert user == sample_user_model
