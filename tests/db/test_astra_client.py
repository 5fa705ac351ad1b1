import pytest
from unittest.mock import patch, AsyncMock, MagicMock
from vidshare.db import astra_client


@pytest.fixture(autouse=True)
def reset_db_instance():
    astra_client.db_instance = None
    yield
    astra_client.db_instance = None


@pytest.mark.asyncio
async def test_init_astra_db_success(monkeypatch):
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_API_ENDPOINT", "test_endpoint")
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_APPLICATION_TOKEN", "test_token")
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_KEYSPACE", "test_keyspace")

    with patch(
        "vidshare.db.astra_client.AstraDB", new_callable=MagicMock
    ) as mock_astra_db_class:
        await astra_client.init_astra_db()
        assert astra_client.db_instance is not None
        mock_astra_db_class.assert_called_once_with(
            api_endpoint="test_endpoint", token="test_token", namespace="test_keyspace"
        )


@pytest.mark.asyncio
async def test_init_astra_db_missing_config(monkeypatch):
    monkeypatch.setattr(astra_client.settings, "ASTRA_DB_API_ENDPOINT", "")
    with pytest.raises(ValueError, match="AstraDB settings are not fully configured."):
        await astra_client.init_astra_db()
    assert astra_client.db_instance is None


@pytest.mark.asyncio
async def test_get_astra_db_not_initialized_calls_init():
    with patch(
        "vidshare.db.astra_client.AstraDB", new_callable=MagicMock
    ) as mock_astra_db_class:
        await astra_client.get_astra_db()
        assert astra_client.db_instance is not None
        mock_astra_db_class.assert_called_once()


@pytest.mark.asyncio
async def test_get_astra_db_already_initialized():
    existing = MagicMock()
    astra_client.db_instance = existing

    with patch(
        "vidshare.db.astra_client.init_astra_db", new_callable=AsyncMock
    ) as mock_init_db:
        db = await astra_client.get_astra_db()
        assert db is existing
        mock_init_db.assert_not_called()


@pytest.mark.asyncio
async def test_get_table():
    mock_db_instance = MagicMock(spec=astra_client.AstraDB)
    mock_collection = MagicMock()
    mock_db_instance.collection.return_value = mock_collection

    with patch(
        "vidshare.db.astra_client.get_astra_db", new_callable=AsyncMock
    ) as mock_get_db:
        mock_get_db.return_value = mock_db_instance

        table = await astra_client.get_table("videos")
        assert table is mock_collection
        mock_db_instance.collection.assert_called_once_with("videos")


def test_astra_db_wraps_async_database():
    with patch("vidshare.db.astra_client.DataAPIClient") as mock_client_class:
        db = astra_client.AstraDB(api_endpoint="https://x", token="t", namespace="ks")
        db.collection("users")

    mock_client_class.return_value.get_async_database.assert_called_once_with(
        "https://x", token="t", keyspace="ks"
    )
    mock_client_class.return_value.get_async_database.return_value.get_collection.assert_called_once_with(
        "users"
    )
