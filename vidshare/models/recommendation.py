from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from vidshare.models.common import VideoID


class VideoSummary(BaseModel):
    """The text of a video as seen by the recommender."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: VideoID = Field(..., alias="_id")
    title: str = ""
    description: Optional[str] = ""


class ScoredCandidate(BaseModel):
    """A catalog video paired with its keyword overlap with the watch signal."""

    model_config = ConfigDict(frozen=True)

    video: VideoSummary
    matchCount: int = Field(..., ge=0)


class RecommendedVideo(BaseModel):
    """Flattened scored candidate returned by the recommendations endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: VideoID = Field(..., alias="_id")
    title: str
    description: Optional[str] = ""
    matchCount: int

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "RecommendedVideo":
        return cls(
            id=candidate.video.id,
            title=candidate.video.title,
            description=candidate.video.description,
            matchCount=candidate.matchCount,
        )


__all__ = ["VideoSummary", "ScoredCandidate", "RecommendedVideo"]
