from __future__ import annotations

"""Text helpers for the recommendation pipeline."""

from typing import List, Optional

__all__ = ["split_words", "video_text"]


def split_words(text: str) -> List[str]:
    """Split *text* on runs of whitespace, dropping empty tokens."""

    return text.split()


def video_text(title: Optional[str], description: Optional[str]) -> str:
    """Return ``title + " " + description`` with missing parts treated as empty."""

    return f"{title or ''} {description or ''}"
