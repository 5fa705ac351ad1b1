import pathlib
import os
import logging
from typing import Optional

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidshare.version import __version__ as app_version

# --------------------------------------------------------------
# Root logging configuration
# --------------------------------------------------------------
# Honour a LOG_LEVEL environment variable (default INFO) so that running e.g.
#   $ export LOG_LEVEL=DEBUG
# surfaces debug-level log lines from all project modules without requiring a
# custom uvicorn logging config.

_root_log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Only configure the root logger if it hasn't been configured yet (pytest and
# uvicorn install their own handlers).
if not logging.getLogger().hasHandlers():  # pragma: no cover
    logging.basicConfig(
        level=_root_log_level, format="%(levelname)s:%(name)s:%(message)s"
    )
else:
    logging.getLogger().setLevel(_root_log_level)

# The .env file lives at the project root, two levels above this package
# directory.  Resolving it from __file__ keeps `uvicorn --reload` independent
# of the current working directory.
_project_root = pathlib.Path(__file__).parent.parent.parent
_ENV_FILE = _project_root / ".env"
if not _ENV_FILE.is_file():
    logging.debug("No .env file found at %s, falling back to ./.env", _ENV_FILE)
    _ENV_FILE = pathlib.Path(".env")


class Settings(BaseSettings):
    # Populated from the .env file and environment variables.
    # See: https://docs.pydantic.dev/latest/concepts/pydantic_settings/

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "VidShare Backend"
    API_V1_STR: str = "/api/v1"
    APP_VERSION: str = app_version
    ENVIRONMENT: str = Field(default="dev")

    # Astra Data API
    ASTRA_DB_API_ENDPOINT: str = "http://localhost:8080/api"  # Dummy default for tests
    ASTRA_DB_APPLICATION_TOKEN: str = "test-token"  # Dummy default for tests
    ASTRA_DB_KEYSPACE: str = "vidshare"

    # JWT
    ACCESS_TOKEN_SECRET: str = "unit-test-access-secret"  # Dummy default for tests
    REFRESH_TOKEN_SECRET: str = "unit-test-refresh-secret"  # Dummy default for tests
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # Auth cookies are always httpOnly; `secure` is off for plain-http dev.
    COOKIE_SECURE: bool = True

    # Pagination
    DEFAULT_PAGE_SIZE: int = 12
    MAX_PAGE_SIZE: int = 100

    # Request body limit for JSON / urlencoded payloads (bytes).  Multipart
    # uploads are not affected.
    MAX_JSON_BODY_BYTES: int = 16 * 1024

    # CORS – comma-separated origins or "*"
    CORS_ORIGIN: str = "*"

    @property
    def parsed_cors_origins(self) -> list[str]:  # noqa: D401
        raw = self.CORS_ORIGIN
        if raw.strip() == "*":
            return ["*"]
        origins = []
        for o in raw.split(","):
            o_strip = o.strip()
            if not o_strip:
                continue
            # "http://localhost:5173/" and "http://localhost:5173" must match.
            origins.append(o_strip.rstrip("/"))
        return origins

    # ------------------------------------------------------------------
    # Media upload (Cloudinary)
    # ------------------------------------------------------------------

    MEDIA_UPLOAD_BACKEND: str = Field(
        default="cloudinary",
        description="'cloudinary' for real uploads, 'mock' for local development.",
    )
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    MEDIA_UPLOAD_TIMEOUT: float = Field(
        default=60.0,
        description="Timeout (seconds) for outbound media upload requests.",
        ge=1.0,
    )

    # ------------------------------------------------------------------
    # Recommendation feed
    # ------------------------------------------------------------------

    # Longest stored watch history; the oldest views are dropped past it.
    WATCH_HISTORY_MAX_ENTRIES: int = Field(default=500, ge=1)

    RECOMMENDATION_HISTORY_SIZE: int = Field(default=5, ge=1)
    RECOMMENDATION_CATALOG_LIMIT: int = Field(
        default=10_000,
        ge=1,
        description="Upper bound on published videos scanned per recommendation request.",
    )
    POS_TAGGER_LANG: str = Field(
        default="eng", description="Language code of the NLTK perceptron tagger model."
    )
    POS_NOUN_PREFIX: str = "NN"
    NLTK_DATA_DIR: Optional[str] = None
    NLTK_AUTO_DOWNLOAD: bool = False

    # ------------------------------------------------------------------
    # Pydantic hook: coerce boolean env vars that may carry inline
    # descriptors (e.g. "false   # local only") coming from env files.
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _sanitize_bool_tokens(cls, data):  # type: ignore[return-value]
        for key in (
            "COOKIE_SECURE",
            "NLTK_AUTO_DOWNLOAD",
            "OBSERVABILITY_ENABLED",
            "OTEL_TRACES_ENABLED",
            "OTEL_METRICS_ENABLED",
            "LOKI_ENABLED",
        ):
            if key in data and isinstance(data[key], str):
                token = data[key].split("#", 1)[0].strip().split()
                data[key] = token[0] if token else data[key]
        return data

    # ------------------------------------------------------------------
    # Observability / Telemetry
    # ------------------------------------------------------------------

    OBSERVABILITY_ENABLED: bool = Field(
        default=True,
        description="Globally enable/disable all extra observability (metrics/traces/log shipping).",
    )

    # Base OTLP endpoint, e.g. http://otelcol:4317.  Unset disables export.
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_TRACES_ENABLED: bool = True
    # The Prometheus scrape endpoint stays active regardless of this flag.
    OTEL_METRICS_ENABLED: bool = False
    # "grpc" (4317) or "http" (4318)
    OTEL_EXPORTER_OTLP_PROTOCOL: str = Field(default="grpc")
    # Comma-separated key=value list, e.g. "token=abcd123,env=dev".
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = Field(default=None)
    OTEL_TRACES_SAMPLER_RATIO: float = Field(default=1.0, ge=0.0, le=1.0)

    LOKI_ENABLED: bool = Field(
        default=False, description="Enable structured log shipping to Loki."
    )
    LOKI_ENDPOINT: Optional[str] = Field(
        default=None,
        description="Loki push API endpoint, e.g. http://loki:3100/loki/api/v1/push.",
    )
    LOKI_EXTRA_LABELS: Optional[str] = Field(default=None)


settings = Settings()
