"""Client-side rating and playback coordination."""

from .vote_store import VoteStore, MemoryStorage, JsonFileStorage, StorageUnavailableError
from .rating_api import RatingApiClient, RatingApiError, RatingCounts
from .rating_controller import RatingController, RatingPoller, RatingView, PendingVote
from .playback import PlaybackController, SeekTracker, format_time
from .session import HubSession

__all__ = [
    "VoteStore",
    "MemoryStorage",
    "JsonFileStorage",
    "StorageUnavailableError",
    "RatingApiClient",
    "RatingApiError",
    "RatingCounts",
    "RatingController",
    "RatingPoller",
    "RatingView",
    "PendingVote",
    "PlaybackController",
    "SeekTracker",
    "format_time",
    "HubSession",
]
