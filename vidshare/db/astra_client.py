"""Process-wide handle on the Astra Data API database.

All persistence goes through *collections* of the async astrapy client.  The
database object is created lazily on first use (or eagerly at application
start-up) and shared by every request.
"""

import logging
from typing import Optional

import httpx
from astrapy import AsyncCollection, AsyncDatabase, DataAPIClient
from httpcore import ConnectError as HttpcoreConnectError

from vidshare.core.config import settings

logger = logging.getLogger(__name__)

# Re-exported so services can annotate injected collections without importing
# astrapy themselves.
AstraDBCollection = AsyncCollection


class AstraDB:
    """Thin wrapper exposing ``collection(name)`` over an ``AsyncDatabase``."""

    def __init__(self, *, api_endpoint: str, token: str, namespace: str):
        client = DataAPIClient()
        self._db: AsyncDatabase = client.get_async_database(
            api_endpoint,
            token=token,
            keyspace=namespace,
        )

    def collection(self, name: str) -> AsyncCollection:
        return self._db.get_collection(name)


db_instance: Optional[AstraDB] = None


async def init_astra_db():
    global db_instance
    if not all(
        [
            settings.ASTRA_DB_API_ENDPOINT,
            settings.ASTRA_DB_APPLICATION_TOKEN,
            settings.ASTRA_DB_KEYSPACE,
        ]
    ):
        logger.error(
            "AstraDB settings are not fully configured. Please check ASTRA_DB_API_ENDPOINT, ASTRA_DB_APPLICATION_TOKEN, and ASTRA_DB_KEYSPACE."
        )
        raise ValueError("AstraDB settings are not fully configured.")

    try:
        # Log only part of the endpoint
        logger.info(
            "Initializing AstraDB client for keyspace: %s at %s...",
            settings.ASTRA_DB_KEYSPACE,
            settings.ASTRA_DB_API_ENDPOINT[:30],
        )
        db_instance = AstraDB(
            api_endpoint=settings.ASTRA_DB_API_ENDPOINT,
            token=settings.ASTRA_DB_APPLICATION_TOKEN,
            namespace=settings.ASTRA_DB_KEYSPACE,
        )
        logger.info("AstraDB client initialized successfully.")
    except (httpx.ConnectError, HttpcoreConnectError, ConnectionError) as e:
        logger.error(
            "Unable to establish connection to AstraDB – check API endpoint/token."
        )
        logger.debug("Connection error details: %s", e)
        raise
    except Exception as e:
        logger.error("Failed to initialize AstraDB client: %s", e, exc_info=True)
        raise


async def get_astra_db() -> AstraDB:
    if db_instance is None:
        logger.info("AstraDB instance not found, attempting to initialize...")
        await init_astra_db()  # Raises if initialisation fails
        if db_instance is None:
            raise RuntimeError("AstraDB could not be initialized.")
    return db_instance


async def get_table(table_name: str) -> AstraDBCollection:
    db = await get_astra_db()
    return db.collection(table_name)
