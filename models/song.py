"""
Song data model and song id validation.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

# Catalog ids are opaque and URL-safe
SONG_ID_PATTERN = re.compile(r"^[a-z0-9_-]+$", re.IGNORECASE)
SONG_ID_MAX_LENGTH = 64


def validate_song_id(value: Any) -> Optional[str]:
    """
    Validate and normalize a song id.

    Args:
        value: Raw id from a query string, JSON body or catalog entry

    Returns:
        The trimmed id, or None if it is missing or malformed
    """
    if value is None:
        return None

    song_id = str(value).strip()
    if not song_id or len(song_id) > SONG_ID_MAX_LENGTH:
        return None
    if not SONG_ID_PATTERN.match(song_id):
        return None
    return song_id


@dataclass(frozen=True)
class Song:
    """A catalog entry. Immutable once fetched."""

    id: str
    title: str
    audio_src: str
    cover_src: str

    @classmethod
    def from_dict(cls, data: dict) -> "Song":
        """Create a song from a catalog record (camelCase keys)."""
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or data["id"]),
            audio_src=str(data.get("audioSrc") or ""),
            cover_src=str(data.get("coverSrc") or ""),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "audioSrc": self.audio_src,
            "coverSrc": self.cover_src,
        }
