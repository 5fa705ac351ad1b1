"""VidShare FastAPI application.

Assembles every router under ``/api/v1`` and renders all failures with the
uniform error envelope ``{statusCode, message, success, errors, instance}``.
"""

import logging

import httpx
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from httpcore import ConnectError as HttpcoreConnectError
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidshare.api.v1.endpoints import (
    comments,
    likes,
    playlists,
    subscriptions,
    tweets,
    users,
    videos,
)
from vidshare.core.config import settings
from vidshare.core.exceptions import MediaUploadError, TaggingError
from vidshare.db.astra_client import init_astra_db
from vidshare.models.common import ApiErrorResponse
from vidshare.utils.observability import configure_observability

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.APP_VERSION)

# ---------------------------------------------------------------------------
# CORS middleware
#
# See: https://fastapi.tiangolo.com/tutorial/cors/
# ---------------------------------------------------------------------------

logger.debug("CORS origins: %s", settings.parsed_cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.parsed_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API router for v1
api_router_v1 = APIRouter(prefix=settings.API_V1_STR)
api_router_v1.include_router(users.router)
api_router_v1.include_router(videos.router)
api_router_v1.include_router(subscriptions.router)
api_router_v1.include_router(comments.router)
api_router_v1.include_router(likes.router)
api_router_v1.include_router(playlists.router)
api_router_v1.include_router(tweets.router)

app.include_router(api_router_v1)

configure_observability(app)


@app.on_event("startup")
async def startup_event():
    await init_astra_db()


def _error_response(
    request: Request, status_code: int, message: str, errors=None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            ApiErrorResponse(
                statusCode=status_code,
                message=message,
                errors=errors or [],
                instance=str(request.url),
            )
        ),
    )


@app.middleware("http")
async def limit_json_body_size(request: Request, call_next):
    """Reject JSON bodies larger than ``MAX_JSON_BODY_BYTES`` with 413.

    A declared ``Content-Length`` is checked up front.  Bodies without one
    (chunked transfer) are counted while they are read and handed to the
    route from the buffered copy.
    """

    if not request.headers.get("content-type", "").startswith("application/json"):
        return await call_next(request)

    limit = settings.MAX_JSON_BODY_BYTES

    def too_large() -> JSONResponse:
        return _error_response(
            request,
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"JSON body exceeds {limit} bytes",
        )

    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        if int(content_length) > limit:
            return too_large()
        return await call_next(request)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return too_large()
    # Same cache Request.body() fills; the middleware replays it downstream.
    request._body = bytes(body)
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = _error_response(request, exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Request validation failed: %s", exc.errors())
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Request validation failed",
        errors=exc.errors(),
    )


@app.exception_handler(TaggingError)
async def tagging_error_handler(request: Request, exc: TaggingError):
    logger.error("Part-of-speech tagging unavailable: %s", exc)
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Recommendations are temporarily unavailable.",
    )


@app.exception_handler(MediaUploadError)
async def media_upload_error_handler(request: Request, exc: MediaUploadError):
    logger.warning("Media upload failed: %s", exc)
    return _error_response(
        request, status.HTTP_502_BAD_GATEWAY, f"Media upload failed: {exc}"
    )


@app.exception_handler(httpx.ConnectError)
async def httpx_connect_error_handler(request: Request, exc: httpx.ConnectError):
    logger.warning("AstraDB connectivity problem: %s", exc)
    logger.debug("Detailed stack trace for connectivity issue:", exc_info=True)
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Unable to reach data store. Please try again later.",
    )


@app.exception_handler(HttpcoreConnectError)
async def httpcore_connect_error_handler(request: Request, exc: HttpcoreConnectError):
    logger.warning("AstraDB connectivity problem: %s", exc)
    logger.debug("Detailed stack trace for connectivity issue:", exc_info=True)
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Unable to reach data store. Please try again later.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected internal server error occurred.",
    )


@app.get("/", summary="Health check")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}!", "status": "healthy"}
