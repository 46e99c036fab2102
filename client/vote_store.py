"""
Client-local vote persistence.
Remembers which way, if any, the local actor voted on each song.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from models.vote import VoteState

logger = logging.getLogger(__name__)

# Namespace for vote keys so other data in the same storage is untouched
VOTE_KEY_PREFIX = "mediahub.vote."


class StorageUnavailableError(Exception):
    """Raised by a storage backend that cannot read or write."""


class MemoryStorage:
    """Key/value storage that lives for the current session only."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Key/value storage persisted as a JSON object on disk.
    Writes go to a temp file first and then replace the existing file.
    """

    def __init__(self, path: str):
        """
        Initialize JSON file storage.

        Args:
            path: JSON file path (created on first write)
        """
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageUnavailableError(f"Cannot read {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class VoteStore:
    """
    Best-effort vote memory.

    Storage failures are logged and swallowed. The last value set in this
    session is still remembered, so voting keeps working, just not durably.
    """

    def __init__(self, storage=None):
        """
        Initialize vote store.

        Args:
            storage: Object with get_item/set_item/remove_item
                     (defaults to MemoryStorage)
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self._session: Dict[str, VoteState] = {}

    @staticmethod
    def key_for(song_id: str) -> str:
        """Storage key for a song's vote."""
        return f"{VOTE_KEY_PREFIX}{song_id}"

    def get(self, song_id: str) -> VoteState:
        """
        Get the stored vote for a song.

        Returns:
            VoteState.NONE if nothing (recognizable) is stored
        """
        if song_id in self._session:
            return self._session[song_id]

        try:
            raw = self.storage.get_item(self.key_for(song_id))
        except (StorageUnavailableError, OSError) as e:
            logger.warning(f"Vote storage unavailable, reading {song_id} as no vote: {e}")
            return VoteState.NONE

        return VoteState.parse(raw)

    def set(self, song_id: str, state: VoteState) -> None:
        """
        Store a vote. VoteState.NONE clears the entry.
        Never raises on storage failure.
        """
        state = VoteState.parse(getattr(state, "value", state))
        self._session[song_id] = state

        try:
            if state is VoteState.NONE:
                self.storage.remove_item(self.key_for(song_id))
            else:
                self.storage.set_item(self.key_for(song_id), state.value)
        except (StorageUnavailableError, OSError) as e:
            logger.warning(f"Could not persist vote for {song_id} (session only): {e}")
