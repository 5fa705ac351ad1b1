"""Service layer package initializer.

This re-exports individual domain services so that callers can simply
``from vidshare.services import user_service, video_service``.
"""

from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING

# Lazily import modules to avoid circular dependencies where possible.

__all__ = [
    "user_service",
    "video_service",
    "recommendation_service",
    "subscription_service",
    "comment_service",
    "like_service",
    "playlist_service",
    "tweet_service",
]

if TYPE_CHECKING:
    from . import user_service as user_service  # noqa: F401
    from . import video_service as video_service  # noqa: F401
    from . import recommendation_service as recommendation_service  # noqa: F401
    from . import subscription_service as subscription_service  # noqa: F401
    from . import comment_service as comment_service  # noqa: F401
    from . import like_service as like_service  # noqa: F401
    from . import playlist_service as playlist_service  # noqa: F401
    from . import tweet_service as tweet_service  # noqa: F401
else:
    def __getattr__(name: str) -> ModuleType:  # noqa: D401
        if name in __all__:
            module = import_module(f"vidshare.services.{name}")
            globals()[name] = module
            return module
        raise AttributeError(name)
