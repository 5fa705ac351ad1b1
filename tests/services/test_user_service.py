from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from astrapy.constants import ReturnDocument
from fastapi import HTTPException

from vidshare.core.security import (
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from vidshare.external_services.media_upload import MockMediaUploader
from vidshare.models.user import (
    AccountUpdateRequest,
    ChangePasswordRequest,
    User,
    UserLoginRequest,
    UserRegisterRequest,
)
from vidshare.services import user_service

PASSWORD = "correct-horse"
HASHED = get_password_hash(PASSWORD)


def _user_doc(**overrides):
    doc = {
        "_id": str(uuid4()),
        "username": "alice",
        "email": "alice@example.com",
        "fullName": "Alice Example",
        "avatar": None,
        "coverImage": None,
        "password": HASHED,
        "refreshToken": None,
        "watchHistory": [],
        "createdAt": "2024-01-01T00:00:00+00:00",
    }
    doc.update(overrides)
    return doc


@pytest.mark.asyncio
async def test_register_user_persists_hashed_password():
    table = AsyncMock()
    table.find_one.return_value = None
    request = UserRegisterRequest(
        username="  Alice ", email="alice@example.com", fullName="Alice", password=PASSWORD
    )

    user = await user_service.register_user(request, db_table=table)

    assert isinstance(user, User)
    assert user.username == "alice"
    assert not hasattr(user, "password")
    stored = table.insert_one.call_args.kwargs["document"]
    assert stored["_id"] == str(user.id)
    assert stored["watchHistory"] == []
    assert stored["password"] != PASSWORD
    assert verify_password(PASSWORD, stored["password"])


@pytest.mark.asyncio
async def test_register_user_conflict():
    table = AsyncMock()
    table.find_one.return_value = _user_doc()
    request = UserRegisterRequest(
        username="alice", email="alice@example.com", fullName="Alice", password=PASSWORD
    )

    with pytest.raises(HTTPException) as exc_info:
        await user_service.register_user(request, db_table=table)

    assert exc_info.value.status_code == 409
    table.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_authenticate_unknown_user():
    table = AsyncMock()
    table.find_one.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await user_service.authenticate_user(
            UserLoginRequest(username="ghost", password="x"), db_table=table
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_authenticate_wrong_password():
    table = AsyncMock()
    table.find_one.return_value = _user_doc()

    with pytest.raises(HTTPException) as exc_info:
        await user_service.authenticate_user(
            UserLoginRequest(email="alice@example.com", password="nope"), db_table=table
        )

    assert exc_info.value.status_code == 401
    assert table.find_one.call_args.kwargs["filter"] == {"email": "alice@example.com"}


@pytest.mark.asyncio
async def test_login_issues_and_stores_tokens():
    doc = _user_doc()
    table = AsyncMock()
    table.find_one.return_value = doc

    result = await user_service.login(
        UserLoginRequest(username="Alice", password=PASSWORD), db_table=table
    )

    assert str(result.user.id) == doc["_id"]
    assert decode_token(result.accessToken).username == "alice"
    update = table.update_one.call_args.kwargs["update"]
    assert update == {"$set": {"refreshToken": result.refreshToken}}


@pytest.mark.asyncio
async def test_refresh_tokens_rotates_stored_token():
    user_id = uuid4()
    old_token = create_refresh_token(user_id, expires_delta=timedelta(minutes=5))
    table = AsyncMock()
    table.find_one.return_value = _user_doc(_id=str(user_id), refreshToken=old_token)

    tokens = await user_service.refresh_tokens(old_token, db_table=table)

    assert UUID(decode_token(tokens.accessToken).sub) == user_id
    table.update_one.assert_awaited_once()
    stored = table.update_one.call_args.kwargs["update"]["$set"]["refreshToken"]
    assert stored == tokens.refreshToken


@pytest.mark.asyncio
async def test_refresh_tokens_rejects_reused_token():
    user_id = uuid4()
    presented = create_refresh_token(user_id)
    table = AsyncMock()
    table.find_one.return_value = _user_doc(_id=str(user_id), refreshToken="something-else")

    with pytest.raises(HTTPException) as exc_info:
        await user_service.refresh_tokens(presented, db_table=table)

    assert exc_info.value.status_code == 401
    table.update_one.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
async def test_refresh_tokens_rejects_missing_or_malformed(token):
    with pytest.raises(HTTPException) as exc_info:
        await user_service.refresh_tokens(token, db_table=AsyncMock())

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_logout_unsets_refresh_token():
    table = AsyncMock()
    user_id = uuid4()

    await user_service.logout(user_id, db_table=table)

    table.update_one.assert_awaited_once_with(
        filter={"_id": str(user_id)}, update={"$unset": {"refreshToken": ""}}
    )


@pytest.mark.asyncio
async def test_change_password_requires_old_password():
    table = AsyncMock()
    table.find_one.return_value = _user_doc()

    with pytest.raises(HTTPException) as exc_info:
        await user_service.change_password(
            uuid4(),
            ChangePasswordRequest(oldPassword="wrong", newPassword="brand-new-pass"),
            db_table=table,
        )

    assert exc_info.value.status_code == 400
    table.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_change_password_stores_new_hash():
    table = AsyncMock()
    table.find_one.return_value = _user_doc()

    await user_service.change_password(
        uuid4(),
        ChangePasswordRequest(oldPassword=PASSWORD, newPassword="brand-new-pass"),
        db_table=table,
    )

    new_hash = table.update_one.call_args.kwargs["update"]["$set"]["password"]
    assert verify_password("brand-new-pass", new_hash)


@pytest.mark.asyncio
async def test_update_account_email_conflict():
    table = AsyncMock()
    table.find_one.return_value = _user_doc(email="taken@example.com")

    with pytest.raises(HTTPException) as exc_info:
        await user_service.update_account(
            uuid4(), AccountUpdateRequest(email="taken@example.com"), db_table=table
        )

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_update_account_requires_a_field():
    with pytest.raises(HTTPException) as exc_info:
        await user_service.update_account(uuid4(), AccountUpdateRequest(), db_table=AsyncMock())

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_update_account_sets_full_name():
    user_id = uuid4()
    table = AsyncMock()
    table.find_one.return_value = _user_doc(_id=str(user_id), fullName="Alice Renamed")

    user = await user_service.update_account(
        user_id, AccountUpdateRequest(fullName="Alice Renamed"), db_table=table
    )

    assert user.fullName == "Alice Renamed"
    fields = table.update_one.call_args.kwargs["update"]["$set"]
    assert fields["fullName"] == "Alice Renamed"
    assert "updatedAt" in fields


@pytest.mark.asyncio
async def test_update_user_image_uploads_and_saves_url():
    user_id = uuid4()
    table = AsyncMock()
    table.find_one.return_value = _user_doc(_id=str(user_id))

    await user_service.update_user_image(
        user_id,
        "avatar",
        "me.png",
        b"png-bytes",
        "image/png",
        uploader=MockMediaUploader(),
        db_table=table,
    )

    url = table.update_one.call_args.kwargs["update"]["$set"]["avatar"]
    assert url.startswith("https://media.example.com/") and url.endswith("me.png")


@pytest.mark.asyncio
async def test_update_user_image_rejects_non_images():
    with pytest.raises(HTTPException) as exc_info:
        await user_service.update_user_image(
            uuid4(),
            "coverImage",
            "notes.txt",
            b"text",
            "text/plain",
            uploader=MockMediaUploader(),
            db_table=AsyncMock(),
        )

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_channel_profile_counts_and_subscription_flag():
    channel = _user_doc(username="chef")
    users_table = AsyncMock()
    users_table.find_one.return_value = channel
    subs_table = AsyncMock()
    subs_table.count_documents.side_effect = [3, 1]
    subs_table.find_one.return_value = {"_id": "sub"}
    viewer = uuid4()

    profile = await user_service.get_channel_profile(
        "Chef", viewer_id=viewer, users_table=users_table, subscriptions_table=subs_table
    )

    assert profile.subscribersCount == 3
    assert profile.channelsSubscribedToCount == 1
    assert profile.isSubscribed is True
    assert users_table.find_one.call_args.kwargs["filter"] == {"username": "chef"}
    assert subs_table.find_one.call_args.kwargs["filter"] == {
        "channel": channel["_id"],
        "subscriber": str(viewer),
    }


@pytest.mark.asyncio
async def test_channel_profile_unknown_channel():
    users_table = AsyncMock()
    users_table.find_one.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await user_service.get_channel_profile(
            "nobody", users_table=users_table, subscriptions_table=AsyncMock()
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_append_watch_history_pushes_entry():
    table = AsyncMock()
    user_id, video_id = uuid4(), uuid4()
    watched = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    pushed = {"videoId": str(video_id), "watchedAt": watched.isoformat()}
    table.find_one_and_update.return_value = {"_id": str(user_id), "watchHistory": [pushed]}

    await user_service.append_watch_history(user_id, video_id, watched, db_table=table)

    kwargs = table.find_one_and_update.call_args.kwargs
    assert kwargs["filter"] == {"_id": str(user_id)}
    assert kwargs["update"] == {"$push": {"watchHistory": pushed}}
    assert kwargs["return_document"] == ReturnDocument.AFTER
    table.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_append_watch_history_trims_oldest_entries(monkeypatch):
    monkeypatch.setattr(user_service.settings, "WATCH_HISTORY_MAX_ENTRIES", 3)
    table = AsyncMock()
    user_id = uuid4()
    history = [
        {"videoId": str(uuid4()), "watchedAt": f"2024-01-0{day}T00:00:00+00:00"}
        for day in range(1, 6)
    ]
    table.find_one_and_update.return_value = {"_id": str(user_id), "watchHistory": history}

    await user_service.append_watch_history(user_id, uuid4(), db_table=table)

    table.update_one.assert_awaited_once_with(
        filter={"_id": str(user_id)},
        update={"$set": {"watchHistory": history[-3:]}},
    )


@pytest.mark.asyncio
async def test_watch_history_is_distinct_and_newest_first():
    older, newer, owner = uuid4(), uuid4(), uuid4()
    users_table = AsyncMock()
    users_table.find_one.return_value = {
        "_id": str(uuid4()),
        "watchHistory": [
            {"videoId": str(older), "watchedAt": "2024-01-01T00:00:00+00:00"},
            {"videoId": str(newer), "watchedAt": "2024-01-02T00:00:00+00:00"},
            {"videoId": str(older), "watchedAt": "2024-01-03T00:00:00+00:00"},
        ],
    }
    videos_table = MagicMock()
    videos_table.find.return_value = [
        {"_id": str(vid), "videoFile": "f", "thumbnail": "t", "title": title, "owner": str(owner)}
        for vid, title in ((newer, "Newer"), (older, "Older"))
    ]

    videos = await user_service.get_watch_history(
        uuid4(), users_table=users_table, videos_table=videos_table
    )

    assert [v.title for v in videos] == ["Older", "Newer"]


@pytest.mark.asyncio
async def test_watch_history_batches_video_lookup():
    owner = uuid4()
    watched = [uuid4() for _ in range(150)]
    users_table = AsyncMock()
    users_table.find_one.return_value = {
        "_id": str(uuid4()),
        "watchHistory": [
            {
                "videoId": str(vid),
                "watchedAt": (
                    datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=i)
                ).isoformat(),
            }
            for i, vid in enumerate(watched)
        ],
    }
    videos_table = MagicMock()
    videos_table.find.side_effect = lambda **kwargs: [
        {"_id": i, "videoFile": "f", "thumbnail": "t", "title": i, "owner": str(owner)}
        for i in kwargs["filter"]["_id"]["$in"]
    ]

    videos = await user_service.get_watch_history(
        uuid4(), users_table=users_table, videos_table=videos_table
    )

    assert [v.id for v in videos] == list(reversed(watched))
    assert videos_table.find.call_count == 2
    for call in videos_table.find.call_args_list:
        assert len(call.kwargs["filter"]["_id"]["$in"]) <= 100
