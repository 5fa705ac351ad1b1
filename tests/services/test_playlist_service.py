from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import HTTPException

from vidshare.models.playlist import PlaylistCreateRequest, PlaylistUpdateRequest
from vidshare.services import playlist_service


def _playlist_doc(owner_id, videos=None, **overrides):
    doc = {
        "_id": str(uuid4()),
        "name": "Favourites",
        "description": "",
        "videos": [str(v) for v in (videos or [])],
        "owner": str(owner_id),
    }
    doc.update(overrides)
    return doc


@pytest.mark.asyncio
async def test_create_playlist(sample_user):
    table = AsyncMock()

    playlist = await playlist_service.create_playlist(
        PlaylistCreateRequest(name="  Road trip "), sample_user, db_table=table
    )

    assert playlist.name == "Road trip"
    assert playlist.videos == []
    stored = table.insert_one.call_args.kwargs["document"]
    assert stored["owner"] == str(sample_user.id)
    assert stored["videos"] == []


@pytest.mark.asyncio
async def test_get_missing_playlist():
    table = AsyncMock()
    table.find_one.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await playlist_service.get_playlist_by_id(uuid4(), db_table=table)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_update_playlist_not_owner(sample_user, other_user):
    table = AsyncMock()
    table.find_one.return_value = _playlist_doc(other_user.id)

    with pytest.raises(HTTPException) as exc_info:
        await playlist_service.update_playlist(
            uuid4(), PlaylistUpdateRequest(name="Mine now"), sample_user, db_table=table
        )

    assert exc_info.value.status_code == 403
    table.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_update_playlist_requires_a_field(sample_user):
    table = AsyncMock()
    table.find_one.return_value = _playlist_doc(sample_user.id)

    with pytest.raises(HTTPException) as exc_info:
        await playlist_service.update_playlist(
            uuid4(), PlaylistUpdateRequest(), sample_user, db_table=table
        )

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_add_video_to_playlist(sample_user):
    video_id = uuid4()
    doc = _playlist_doc(sample_user.id)
    updated = {**doc, "videos": [str(video_id)]}
    table = AsyncMock()
    table.find_one.side_effect = [doc, updated]
    videos_table = AsyncMock()
    videos_table.find_one.return_value = {
        "_id": str(video_id),
        "videoFile": "v",
        "thumbnail": "t",
        "title": "x",
        "owner": str(uuid4()),
    }

    playlist = await playlist_service.add_video_to_playlist(
        doc["_id"], video_id, sample_user, db_table=table, videos_table=videos_table
    )

    assert playlist.videos == [video_id]
    update = table.update_one.call_args.kwargs["update"]
    assert update["$addToSet"] == {"videos": str(video_id)}


@pytest.mark.asyncio
async def test_add_unknown_video_to_playlist(sample_user):
    table = AsyncMock()
    table.find_one.return_value = _playlist_doc(sample_user.id)
    videos_table = AsyncMock()
    videos_table.find_one.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await playlist_service.add_video_to_playlist(
            uuid4(), uuid4(), sample_user, db_table=table, videos_table=videos_table
        )

    assert exc_info.value.status_code == 404
    table.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_remove_video_from_playlist(sample_user):
    keep, drop = uuid4(), uuid4()
    doc = _playlist_doc(sample_user.id, videos=[keep, drop])
    table = AsyncMock()
    table.find_one.side_effect = [doc, {**doc, "videos": [str(keep)]}]

    playlist = await playlist_service.remove_video_from_playlist(
        doc["_id"], drop, sample_user, db_table=table
    )

    assert playlist.videos == [keep]
    assert table.update_one.call_args.kwargs["update"]["$set"]["videos"] == [str(keep)]


@pytest.mark.asyncio
async def test_remove_absent_video_is_noop(sample_user):
    doc = _playlist_doc(sample_user.id, videos=[uuid4()])
    table = AsyncMock()
    table.find_one.return_value = doc

    playlist = await playlist_service.remove_video_from_playlist(
        doc["_id"], uuid4(), sample_user, db_table=table
    )

    assert len(playlist.videos) == 1
    table.update_one.assert_not_called()
