"""
Rating counter record.
"""

from dataclasses import dataclass


@dataclass
class RatingRecord:
    """Like/dislike counters for one song. Both counters stay >= 0."""

    song_id: str
    likes: int = 0
    dislikes: int = 0

    def __post_init__(self):
        self.likes = max(0, int(self.likes or 0))
        self.dislikes = max(0, int(self.dislikes or 0))

    @classmethod
    def empty(cls, song_id: str) -> "RatingRecord":
        """Record for a song nobody has voted on yet."""
        return cls(song_id=song_id)

    def to_dict(self) -> dict:
        """Convert to the public counts payload."""
        return {
            "likes": self.likes,
            "dislikes": self.dislikes,
        }
