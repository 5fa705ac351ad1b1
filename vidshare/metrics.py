from prometheus_client import Histogram

# ---------------------------------------------------------------------------
# Custom Prometheus metrics – exported via /metrics route exposed by
# prometheus_fastapi_instrumentator in vidshare.utils.observability.configure_observability().
# ---------------------------------------------------------------------------

ASTRA_DB_QUERY_DURATION_SECONDS = Histogram(
    "astra_db_query_duration_seconds",
    "Latency of Astra DB Data API queries (seconds)",
    ["operation"],
)

MEDIA_UPLOAD_DURATION_SECONDS = Histogram(
    "media_upload_duration_seconds",
    "Latency of uploads to the media service (seconds)",
    ["backend"],
)

POS_TAGGING_DURATION_SECONDS = Histogram(
    "pos_tagging_duration_seconds",
    "Latency of part-of-speech tagging of watch-history text (seconds)",
)

RECOMMENDATION_DURATION_SECONDS = Histogram(
    "recommendation_generation_duration_seconds",
    "Latency of the watch-history recommendation pipeline (seconds)",
)
