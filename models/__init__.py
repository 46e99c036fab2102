"""Data models for the Media Hub ratings service."""

from .song import Song, validate_song_id, SONG_ID_MAX_LENGTH
from .rating import RatingRecord
from .vote import VoteState, VoteType, VoteTransition, transition

__all__ = [
    "Song",
    "validate_song_id",
    "SONG_ID_MAX_LENGTH",
    "RatingRecord",
    "VoteState",
    "VoteType",
    "VoteTransition",
    "transition",
]
