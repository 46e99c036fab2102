"""
Rating service.
Validates requests and applies vote deltas to the shared counters.
"""

import logging
from typing import Any, Optional

from models.rating import RatingRecord
from models.song import validate_song_id
from .errors import InvalidSongIdError
from .rating_store import RatingStore

logger = logging.getLogger(__name__)


def clamp_delta(value: Any) -> int:
    """
    Clamp a requested delta to -1, 0 or 1.
    Anything that is not exactly +1 or -1 means "no vote intent".
    """
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0

    if number == 1:
        return 1
    if number == -1:
        return -1
    return 0


class RatingService:
    """
    Exposes current like/dislike counts and the atomic delta operation.
    """

    def __init__(self, store: RatingStore):
        """
        Initialize rating service.

        Args:
            store: Counter store providing the atomic increment primitive
        """
        self.store = store

    @property
    def backend_name(self) -> str:
        return self.store.name

    def require_song_id(self, raw_value: Any) -> str:
        """
        Validate a song id.

        Raises:
            InvalidSongIdError: Missing, too long, or outside [a-z0-9_-]
        """
        song_id = validate_song_id(raw_value)
        if song_id is None:
            raise InvalidSongIdError(raw_value)
        return song_id

    async def get_ratings(self, raw_song_id: Any) -> RatingRecord:
        """
        Get current counts for a song.

        Args:
            raw_song_id: Song id as received

        Returns:
            RatingRecord, zeroed if nobody voted yet

        Raises:
            InvalidSongIdError: Malformed song id
            RatingStoreError: Store unavailable
        """
        song_id = self.require_song_id(raw_song_id)
        record = await self.store.get(song_id)
        return record or RatingRecord.empty(song_id)

    async def apply_delta(
        self,
        raw_song_id: Any,
        like_delta: Any,
        dislike_delta: Any,
    ) -> Optional[RatingRecord]:
        """
        Apply a vote change to a song's counters.

        Both deltas go to the store in one atomic step and each counter
        is floored at 0.

        Args:
            raw_song_id: Song id as received
            like_delta: Requested like change
            dislike_delta: Requested dislike change

        Returns:
            Updated RatingRecord, or None if both deltas were 0 (no write)

        Raises:
            InvalidSongIdError: Malformed song id
            RatingStoreError: Store unavailable; nothing was applied
        """
        song_id = self.require_song_id(raw_song_id)
        like = clamp_delta(like_delta)
        dislike = clamp_delta(dislike_delta)

        if like == 0 and dislike == 0:
            logger.debug(f"No-op vote for {song_id}")
            return None

        record = await self.store.increment(song_id, like, dislike)
        logger.debug(
            f"Applied vote to {song_id} ({like:+d}/{dislike:+d}) -> "
            f"{record.likes} likes, {record.dislikes} dislikes"
        )
        return record
