"""
Client session: one set of song cards with their controllers.
"""

import logging
from typing import Callable, Dict, List, Optional

from config.settings import Settings
from models.song import Song
from .playback import PlaybackController
from .rating_api import RatingApiClient
from .rating_controller import RatingController, RatingPoller
from .vote_store import JsonFileStorage, VoteStore

logger = logging.getLogger(__name__)


class HubSession:
    """Loads the catalog and wires a RatingController per song."""

    def __init__(
        self,
        api: RatingApiClient,
        vote_store: VoteStore,
        poll_seconds: float = 7.0,
        is_visible: Optional[Callable[[], bool]] = None,
    ):
        self.api = api
        self.vote_store = vote_store
        self.playback = PlaybackController()
        self.poller = RatingPoller(interval=poll_seconds, is_visible=is_visible)
        self.songs: List[Song] = []
        self.ratings: Dict[str, RatingController] = {}

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "HubSession":
        """Build a session using the configured API URL and vote file."""
        return cls(
            api=RatingApiClient(settings.api_base_url),
            vote_store=VoteStore(JsonFileStorage(settings.vote_store_path)),
            poll_seconds=settings.ratings_poll_seconds,
            **kwargs,
        )

    async def start(self) -> List[Song]:
        """
        Fetch songs, load every card's rating and start polling.

        Returns:
            The songs shown
        """
        self.songs = await self.api.list_songs()
        logger.info(f"Loaded {len(self.songs)} songs")

        for song in self.songs:
            controller = RatingController(song.id, self.api, self.vote_store)
            self.ratings[song.id] = controller
            self.poller.register(controller)
            await controller.load()

        self.poller.start()
        return self.songs

    async def close(self) -> None:
        await self.poller.stop()
        await self.api.close()
