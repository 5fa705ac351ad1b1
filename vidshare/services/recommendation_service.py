"""Content-based "recommended for you" feed.

The feed is computed per request from the caller's watch history:

1. the most recently watched videos (newest first, deleted videos skipped);
2. the nouns of their lower-cased titles and descriptions;
3. every published video scored by how many of those nouns appear in its own
   title and description (presence only, not frequency);
4. candidates sorted by score, ties keeping catalog order, then paged.

Nothing is cached between calls.  Every candidate is scanned on every
request, so latency grows with ``catalog size x noun count``; the scan is
bounded by ``RECOMMENDATION_CATALOG_LIMIT``.
"""

from __future__ import annotations

import logging
import time
from itertools import takewhile
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from opentelemetry import trace

from vidshare.core.config import settings
from vidshare.core.exceptions import EmptyCatalogError, EmptyInputError, NoHistoryError
from vidshare.db.astra_client import AstraDBCollection, get_table
from vidshare.external_services.pos_tagger import Tagger, get_tagger
from vidshare.metrics import ASTRA_DB_QUERY_DURATION_SECONDS, RECOMMENDATION_DURATION_SECONDS
from vidshare.models.common import UserID
from vidshare.models.recommendation import ScoredCandidate, VideoSummary
from vidshare.models.user import WatchHistoryEntry
from vidshare.utils.db_helpers import cursor_to_list, iter_docs_by_ids
from vidshare.utils.text import split_words, video_text

logger = logging.getLogger(__name__)

USERS_TABLE_NAME = "users"
VIDEOS_TABLE_NAME = "videos"

_SUMMARY_PROJECTION = {"_id": True, "title": True, "description": True}


# ---------------------------------------------------------------------------
# Store protocols
# ---------------------------------------------------------------------------


class HistoryStore(Protocol):
    async def fetch_recent_watched(
        self, user_id: UserID, limit: int
    ) -> List[VideoSummary]:
        """Return up to *limit* watched videos, newest ``watchedAt`` first."""
        ...


class CatalogStore(Protocol):
    async def fetch_published_catalog(self) -> List[VideoSummary]:
        """Return every published video in store order."""
        ...


# ---------------------------------------------------------------------------
# Pure pipeline stages
# ---------------------------------------------------------------------------


def extract_recent_history(
    entries: Iterable[WatchHistoryEntry],
    videos_by_id: Mapping[UUID, VideoSummary],
    limit: int = 5,
) -> List[VideoSummary]:
    """Resolve history entries to videos, newest first.

    Entries whose video is not in *videos_by_id* are dropped before *limit* is
    applied.  Repeat views stay as repeat entries.
    """

    ordered = sorted(entries, key=lambda e: e.watchedAt, reverse=True)
    recent: List[VideoSummary] = []
    for entry in ordered:
        if len(recent) >= limit:
            break
        video = videos_by_id.get(entry.videoId)
        if video is None:
            continue
        recent.append(video)
    return recent


def build_keyword_set(videos: Sequence[VideoSummary]) -> List[str]:
    blob = " ".join(video_text(v.title, v.description).lower() for v in videos)
    return split_words(blob)


def extract_nouns(
    videos: Sequence[VideoSummary],
    tagger: Tagger,
    noun_prefix: str = "NN",
) -> List[str]:
    """Return the tokens of *videos* tagged as nouns, in blob order.

    Raises ``EmptyInputError`` when the combined text has no tokens.
    ``TaggingError`` from *tagger* propagates unchanged.
    """

    keywords = build_keyword_set(videos)
    if not keywords:
        raise EmptyInputError("Watch history has no title or description text")

    tagged = tagger.tag(keywords)
    return [token for token, tag in tagged if tag.startswith(noun_prefix)]


def score_candidates(
    nouns: Iterable[str], catalog: Sequence[VideoSummary]
) -> List[ScoredCandidate]:
    noun_set = set(nouns)
    scored: List[ScoredCandidate] = []
    for video in catalog:
        tokens = set(split_words(video_text(video.title, video.description).lower()))
        scored.append(ScoredCandidate(video=video, matchCount=len(noun_set & tokens)))
    return scored


def _check_page(page: int, page_size: int) -> None:
    if not isinstance(page, int) or page < 1:
        raise ValueError(f"page must be a positive integer, got {page!r}")
    if not isinstance(page_size, int) or page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size!r}")


def paginate(
    scored: Sequence[ScoredCandidate], page: int = 1, page_size: int = 12
) -> List[ScoredCandidate]:
    """Sort by ``matchCount`` descending (stable) and return one page."""

    _check_page(page, page_size)
    ordered = sorted(scored, key=lambda c: -c.matchCount)
    start = (page - 1) * page_size
    return ordered[start : start + page_size]


# ---------------------------------------------------------------------------
# Data API backed stores
# ---------------------------------------------------------------------------


def _to_summary(doc) -> VideoSummary:
    return VideoSummary(
        id=doc["_id"],
        title=doc.get("title") or "",
        description=doc.get("description") or "",
    )


class AstraHistoryStore:
    """Reads ``users.watchHistory`` and joins it against ``videos``."""

    def __init__(
        self,
        users_table: Optional[AstraDBCollection] = None,
        videos_table: Optional[AstraDBCollection] = None,
    ):
        self._users_table = users_table
        self._videos_table = videos_table

    async def fetch_recent_watched(
        self, user_id: UserID, limit: int
    ) -> List[VideoSummary]:
        users_table = self._users_table or await get_table(USERS_TABLE_NAME)
        videos_table = self._videos_table or await get_table(VIDEOS_TABLE_NAME)

        user_doc = await users_table.find_one(
            filter={"_id": str(user_id)}, projection={"watchHistory": True}
        )
        if not user_doc or not user_doc.get("watchHistory"):
            return []

        entries = [
            WatchHistoryEntry.model_validate(e) for e in user_doc["watchHistory"]
        ]
        entries.sort(key=lambda e: e.watchedAt, reverse=True)

        # Resolve ids newest first, one ``$in`` batch at a time.  Only entries
        # ahead of the first not-yet-fetched id are settled, so a later batch
        # can never be overtaken by an older repeat view.
        distinct_ids: List[UUID] = list(dict.fromkeys(e.videoId for e in entries))
        videos_by_id: dict[UUID, VideoSummary] = {}
        fetched: set[UUID] = set()
        recent: List[VideoSummary] = []
        async for batch, docs in iter_docs_by_ids(
            videos_table, distinct_ids, projection=_SUMMARY_PROJECTION
        ):
            fetched.update(batch)
            for doc in docs:
                summary = _to_summary(doc)
                videos_by_id[summary.id] = summary

            settled = list(takewhile(lambda e: e.videoId in fetched, entries))
            recent = extract_recent_history(settled, videos_by_id, limit)
            if len(recent) >= limit:
                break

        return recent


class AstraCatalogStore:
    """Scans published videos in natural store order."""

    def __init__(
        self,
        videos_table: Optional[AstraDBCollection] = None,
        scan_limit: Optional[int] = None,
    ):
        self._videos_table = videos_table
        self._scan_limit = scan_limit

    async def fetch_published_catalog(self) -> List[VideoSummary]:
        videos_table = self._videos_table or await get_table(VIDEOS_TABLE_NAME)
        scan_limit = self._scan_limit or settings.RECOMMENDATION_CATALOG_LIMIT

        start = time.perf_counter()
        cursor = videos_table.find(
            filter={"isPublished": True},
            projection=_SUMMARY_PROJECTION,
            limit=scan_limit,
        )
        docs = await cursor_to_list(cursor)
        ASTRA_DB_QUERY_DURATION_SECONDS.labels(operation="find").observe(
            time.perf_counter() - start
        )
        return [_to_summary(d) for d in docs]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def recommend(
    user_id: UserID,
    page: int = 1,
    page_size: int = 12,
    *,
    history_store: Optional[HistoryStore] = None,
    catalog_store: Optional[CatalogStore] = None,
    tagger: Optional[Tagger] = None,
) -> Tuple[List[ScoredCandidate], int]:
    """Return one page of recommendations for *user_id* and the candidate total.

    No history, no usable text and an empty catalog all yield ``([], 0)``.
    ``TaggingError`` propagates to the caller.
    """

    _check_page(page, page_size)

    history_store = history_store or AstraHistoryStore()
    catalog_store = catalog_store or AstraCatalogStore()

    tracer = trace.get_tracer(__name__)
    start_time = time.perf_counter()

    with tracer.start_as_current_span("recommendation.recommend") as span:
        span.set_attribute("page", page)
        span.set_attribute("page_size", page_size)
        try:
            try:
                history = await history_store.fetch_recent_watched(
                    user_id, settings.RECOMMENDATION_HISTORY_SIZE
                )
                if not history:
                    raise NoHistoryError(f"User {user_id} has no watch history")

                nouns = extract_nouns(
                    history, tagger or get_tagger(), settings.POS_NOUN_PREFIX
                )

                catalog = await catalog_store.fetch_published_catalog()
                if not catalog:
                    raise EmptyCatalogError("No published videos to recommend")
            except (NoHistoryError, EmptyInputError, EmptyCatalogError) as exc:
                logger.info("Empty recommendations for user %s: %s", user_id, exc)
                span.set_attribute("result_count", 0)
                return [], 0

            scored = score_candidates(nouns, catalog)
            span.set_attribute("history_count", len(history))
            span.set_attribute("noun_count", len(nouns))
            span.set_attribute("result_count", len(scored))
            return paginate(scored, page, page_size), len(scored)
        finally:
            RECOMMENDATION_DURATION_SECONDS.observe(time.perf_counter() - start_time)


__all__ = [
    "HistoryStore",
    "CatalogStore",
    "AstraHistoryStore",
    "AstraCatalogStore",
    "extract_recent_history",
    "build_keyword_set",
    "extract_nouns",
    "score_candidates",
    "paginate",
    "recommend",
]
