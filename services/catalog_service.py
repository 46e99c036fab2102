"""
Song catalog service.
Builds the read-only song list from the media directory.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote
import aiofiles
import aiofiles.os

from models.song import Song, validate_song_id
from .errors import CatalogError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".wav", ".m4a")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
OVERRIDES_FILE = "overrides.json"

_DEFAULT_COVER = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="1200" height="675" viewBox="0 0 1200 675">
<rect width="1200" height="675" fill="#1a1a1a"/>
<text x="50%" y="50%" dominant-baseline="middle" text-anchor="middle"
font-family="monospace" font-size="56" fill="#777">MediaHub</text>
</svg>"""

DEFAULT_COVER_SRC = "data:image/svg+xml;utf8," + quote(_DEFAULT_COVER.replace("\n", ""))


def normalize_name(value: str) -> str:
    """Lowercase and collapse everything non-alphanumeric to single spaces."""
    return re.sub(r"[^a-z0-9]+", " ", str(value or "").lower()).strip()


def title_from_stem(stem: str) -> str:
    """Build a display title from a file name stem."""
    title = stem.replace("_", " ").replace("-", " ")
    return re.sub(r"\s+", " ", title).strip()


def id_from_stem(stem: str) -> str:
    """Build a song id from a file name stem."""
    return re.sub(r"[^a-z0-9]", "", stem.lower())


class CatalogService:
    """
    Lists songs found in a media directory.
    Audio files are sorted newest first; covers are matched by name.
    """

    def __init__(self, media_dir: str, url_prefix: str = "media"):
        """
        Initialize catalog service.

        Args:
            media_dir: Directory holding audio and image files
            url_prefix: Path prefix used in audioSrc/coverSrc
        """
        self.media_dir = Path(media_dir)
        self.url_prefix = url_prefix.strip("/")

    async def _load_overrides(self) -> Dict[str, dict]:
        path = self.media_dir / OVERRIDES_FILE
        if not await aiofiles.os.path.exists(path):
            return {}

        try:
            async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable {OVERRIDES_FILE}: {e}")
            return {}

        return data if isinstance(data, dict) else {}

    def _match_cover(self, stem: str, images: List[str]) -> Optional[str]:
        norm_audio = normalize_name(stem)
        for image in images:
            norm_image = normalize_name(Path(image).stem)
            if norm_image and (norm_image in norm_audio or norm_audio in norm_image):
                return image
        return None

    async def list_songs(self) -> List[Song]:
        """
        Scan the media directory.

        Returns:
            Songs, newest audio file first

        Raises:
            CatalogError: Media directory cannot be read
        """
        try:
            files = await aiofiles.os.listdir(self.media_dir)
        except OSError as e:
            raise CatalogError(f"Cannot read media directory {self.media_dir}: {e}") from e

        audio_files = [f for f in files if f.lower().endswith(AUDIO_EXTENSIONS)]
        images = sorted(f for f in files if f.lower().endswith(IMAGE_EXTENSIONS))
        overrides = await self._load_overrides()

        entries = []
        for audio_file in audio_files:
            try:
                stat = await aiofiles.os.stat(self.media_dir / audio_file)
            except OSError as e:
                logger.warning(f"Skipping {audio_file}: {e}")
                continue
            entries.append((stat.st_mtime, audio_file))

        entries.sort(key=lambda entry: entry[0], reverse=True)

        songs: List[Song] = []
        for _, audio_file in entries:
            stem = Path(audio_file).stem
            override = overrides.get(audio_file) or {}
            if not isinstance(override, dict):
                logger.warning(f"Ignoring malformed {OVERRIDES_FILE} entry for {audio_file}")
                override = {}

            cover = override.get("coverSrc")
            if not cover:
                image = self._match_cover(stem, images)
                cover = f"{self.url_prefix}/{image}" if image else DEFAULT_COVER_SRC

            song_id = validate_song_id(override.get("id") or id_from_stem(stem))
            if song_id is None:
                logger.warning(f"Skipping {audio_file}: cannot derive a valid song id")
                continue

            songs.append(Song(
                id=song_id,
                title=override.get("title") or title_from_stem(stem) or audio_file,
                audio_src=f"{self.url_prefix}/{audio_file}",
                cover_src=cover,
            ))

        logger.debug(f"Catalog scan found {len(songs)} songs in {self.media_dir}")
        return songs
