"""Domain exceptions raised below the HTTP layer.

Client errors (bad input, missing resources, ownership checks) are raised as
``fastapi.HTTPException`` directly from the services.  The classes here cover
failures of collaborators – the POS tagging model and the media upload
service – which ``vidshare.main`` maps onto the error envelope.
"""

from __future__ import annotations

__all__ = [
    "RecommendationError",
    "NoHistoryError",
    "EmptyInputError",
    "EmptyCatalogError",
    "TaggingError",
    "MediaUploadError",
]


class RecommendationError(Exception):
    """Base class for failures inside the recommendation pipeline."""


class NoHistoryError(RecommendationError):
    """The user has no usable watch history."""


class EmptyInputError(RecommendationError):
    """The watch-history text blob produced no tokens."""


class EmptyCatalogError(RecommendationError):
    """There are no published videos to score."""


class TaggingError(RecommendationError):
    """The part-of-speech model is unavailable or rejected the input."""


class MediaUploadError(Exception):
    """Raised when a file cannot be pushed to the media service."""
