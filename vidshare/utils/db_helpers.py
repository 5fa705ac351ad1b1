from __future__ import annotations

"""Utility helpers shared by the service layer for talking to Data API
collections.

* ``cursor_to_list`` drains whatever ``collection.find`` returned – a real
  astrapy cursor, a plain list or an awaitable produced by a test double.
* ``safe_count`` wraps ``count_documents``.  The Data API refuses exact counts
  above its server-side ceiling; in that case the ceiling is returned so
  pagination still has a usable total.
* ``iter_docs_by_ids`` looks documents up by ``_id`` in ``$in`` batches small
  enough for the Data API.
* ``serialize_doc`` converts Python values (UUID, datetime, URLs) into the
  primitive JSON types the Data API expects.
"""

import inspect
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from astrapy.exceptions import TooManyDocumentsToCountException
from pydantic import AnyUrl

__all__ = [
    "cursor_to_list",
    "safe_count",
    "iter_docs_by_ids",
    "serialize_value",
    "serialize_doc",
    "COUNT_UPPER_BOUND",
    "IN_FILTER_MAX",
]

# Exact counts are capped server-side at 1000 documents.
COUNT_UPPER_BOUND = 1000

# The Data API rejects ``$in`` lists longer than this.
IN_FILTER_MAX = 100


async def cursor_to_list(cursor: Any) -> List[Dict[str, Any]]:
    if inspect.isawaitable(cursor):
        cursor = await cursor
    if cursor is None:
        return []
    if isinstance(cursor, list):
        return cursor
    if hasattr(cursor, "to_list"):
        docs = cursor.to_list()
        return await docs if inspect.isawaitable(docs) else docs
    return list(cursor)


async def safe_count(
    db_table,
    *,
    query_filter: Dict[str, Any],
) -> int:
    """Return the number of documents matching *query_filter*."""

    try:
        return await db_table.count_documents(
            filter=query_filter, upper_bound=COUNT_UPPER_BOUND
        )
    except TooManyDocumentsToCountException:
        return COUNT_UPPER_BOUND


def serialize_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, AnyUrl):
        return str(value)
    if isinstance(value, list):
        return [serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    return value


def serialize_doc(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: serialize_value(v) for k, v in payload.items()}


async def iter_docs_by_ids(
    db_table,
    ids: Sequence[Any],
    *,
    projection: Optional[Dict[str, Any]] = None,
    batch_size: int = IN_FILTER_MAX,
) -> AsyncIterator[Tuple[List[Any], List[Dict[str, Any]]]]:
    """Yield ``(batch, docs)`` for *ids*, one ``$in`` query per batch.

    Batches follow the order of *ids*, so callers can stop early once the
    ids they care about most have been resolved.
    """

    for offset in range(0, len(ids), batch_size):
        batch = list(ids[offset : offset + batch_size])
        find_kwargs: Dict[str, Any] = {
            "filter": {"_id": {"$in": [str(i) for i in batch]}}
        }
        if projection is not None:
            find_kwargs["projection"] = projection
        yield batch, await cursor_to_list(db_table.find(**find_kwargs))
