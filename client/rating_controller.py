"""
Per-song vote mediation.

Connects the vote buttons to the local VoteStore, the optimistic counter
display and the ratings API, and keeps displays fresh with a polling loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from models.vote import VoteState, VoteType, VoteTransition, transition
from .rating_api import RatingApiClient, RatingApiError, RatingCounts
from .vote_store import VoteStore

logger = logging.getLogger(__name__)

# Shown while counts are loading, so nothing implies "zero votes"
COUNT_PLACEHOLDER = "—"


@dataclass(frozen=True)
class RatingView:
    """Snapshot of what a song card shows for its rating buttons."""

    song_id: str
    likes: Optional[int]
    dislikes: Optional[int]
    vote: VoteState

    @property
    def like_label(self) -> str:
        return COUNT_PLACEHOLDER if self.likes is None else str(self.likes)

    @property
    def dislike_label(self) -> str:
        return COUNT_PLACEHOLDER if self.dislikes is None else str(self.dislikes)

    @property
    def like_active(self) -> bool:
        return self.vote is VoteState.LIKED

    @property
    def dislike_active(self) -> bool:
        return self.vote is VoteState.DISLIKED


class PendingVote:
    """
    A tentatively applied vote.

    Created with the optimistic counts already on display. Exactly one of
    confirm() or revert() settles it.
    """

    def __init__(
        self,
        controller: "RatingController",
        vote_transition: VoteTransition,
        previous_likes: Optional[int],
        previous_dislikes: Optional[int],
    ):
        self.controller = controller
        self.transition = vote_transition
        self.previous_likes = previous_likes
        self.previous_dislikes = previous_dislikes
        self.settled = False

    def confirm(self, counts: RatingCounts) -> None:
        """
        Overwrite the display with the server's counts.
        A null count keeps whatever is displayed.
        """
        if self.settled:
            return
        self.settled = True

        likes = counts.likes if counts.likes is not None else self.controller.likes
        dislikes = counts.dislikes if counts.dislikes is not None else self.controller.dislikes
        self.controller._display(likes, dislikes)

    async def revert(self) -> None:
        """
        Discard the optimistic counts by re-fetching the authoritative ones.
        If that fetch fails too, the pre-vote counts are restored.
        """
        if self.settled:
            return
        self.settled = True

        if not await self.controller.refresh():
            self.controller._display(self.previous_likes, self.previous_dislikes)


class RatingController:
    """Vote state machine and counter display for one song."""

    def __init__(self, song_id: str, api: RatingApiClient, vote_store: VoteStore):
        """
        Initialize rating controller.

        Args:
            song_id: Catalog id of the song
            api: Ratings API client
            vote_store: Local vote memory
        """
        self.song_id = song_id
        self.api = api
        self.vote_store = vote_store

        # None until the first authoritative fetch lands
        self.likes: Optional[int] = None
        self.dislikes: Optional[int] = None
        self.vote: VoteState = VoteState.NONE

        self._listeners: List[Callable[[RatingView], None]] = []

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @property
    def view(self) -> RatingView:
        return RatingView(
            song_id=self.song_id,
            likes=self.likes,
            dislikes=self.dislikes,
            vote=self.vote,
        )

    def subscribe(self, callback: Callable[[RatingView], None]) -> Callable[[], None]:
        """
        Register a display listener.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        view = self.view
        for callback in list(self._listeners):
            try:
                callback(view)
            except Exception as e:
                logger.error(f"Rating listener failed for {self.song_id}: {e}")

    def _display(self, likes: Optional[int], dislikes: Optional[int]) -> None:
        self.likes = None if likes is None else max(0, likes)
        self.dislikes = None if dislikes is None else max(0, dislikes)
        self._notify()

    # -------------------------------------------------------------------------
    # Loading and Refresh
    # -------------------------------------------------------------------------

    async def load(self) -> None:
        """Show the stored vote, then fetch authoritative counts."""
        self.vote = self.vote_store.get(self.song_id)
        self._notify()
        await self.refresh()

    async def refresh(self) -> bool:
        """
        Replace the displayed counts with the server's.

        Returns:
            True if counts were fetched, False if the request failed
        """
        try:
            counts = await self.api.get_ratings(self.song_id)
        except RatingApiError as e:
            logger.debug(f"Ratings refresh failed for {self.song_id}: {e}")
            return False

        self._display(counts.likes, counts.dislikes)
        return True

    # -------------------------------------------------------------------------
    # Voting
    # -------------------------------------------------------------------------

    def begin_vote(self, vote_type: VoteType) -> PendingVote:
        """
        Apply a vote press locally: optimistic counts, stored vote, highlight.

        Returns:
            PendingVote to confirm or revert once the server answers
        """
        vote_type = VoteType(vote_type)
        step = transition(self.vote, vote_type)
        pending = PendingVote(self, step, self.likes, self.dislikes)

        self.vote = step.new_state
        self.vote_store.set(self.song_id, step.new_state)

        # Placeholder counts are treated as 0
        self._display(
            max(0, (self.likes or 0) + step.like_delta),
            max(0, (self.dislikes or 0) + step.dislike_delta),
        )

        logger.debug(
            f"Vote on {self.song_id}: {vote_type.value} -> {step.new_state.value} "
            f"({step.like_delta:+d}/{step.dislike_delta:+d})"
        )
        return pending

    async def press(self, vote_type: VoteType) -> VoteTransition:
        """
        Handle a like/dislike button press.

        Args:
            vote_type: Button that was pressed

        Returns:
            The transition that was applied
        """
        pending = self.begin_vote(vote_type)
        step = pending.transition

        try:
            counts = await self.api.apply_delta(self.song_id, step.like_delta, step.dislike_delta)
        except RatingApiError as e:
            logger.warning(f"Vote on {self.song_id} failed, reverting: {e}")
            await pending.revert()
        else:
            pending.confirm(counts)

        return step


class RatingPoller:
    """
    Periodically refreshes every registered controller.

    Ticks are skipped while ``is_visible()`` is False. A refresh simply
    overwrites the display; the latest write wins.
    """

    def __init__(
        self,
        controllers: Optional[Iterable[RatingController]] = None,
        interval: float = 7.0,
        is_visible: Optional[Callable[[], bool]] = None,
    ):
        """
        Initialize poller.

        Args:
            controllers: Controllers to refresh
            interval: Seconds between ticks
            is_visible: Predicate telling whether the UI is foregrounded
        """
        self.controllers: List[RatingController] = list(controllers or [])
        self.interval = interval
        self.is_visible = is_visible or (lambda: True)
        self._task: Optional[asyncio.Task] = None

    def register(self, controller: RatingController) -> None:
        if controller not in self.controllers:
            self.controllers.append(controller)

    def unregister(self, controller: RatingController) -> None:
        if controller in self.controllers:
            self.controllers.remove(controller)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> int:
        """
        Run one refresh round.

        Returns:
            Number of controllers refreshed successfully (0 when hidden)
        """
        if not self.is_visible():
            return 0

        results = await asyncio.gather(*(c.refresh() for c in list(self.controllers)))
        return sum(1 for ok in results if ok)

    async def _run(self) -> None:
        logger.info(f"Starting ratings poller ({self.interval}s interval)...")

        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.tick()
            except asyncio.CancelledError:
                logger.info("Ratings poller stopped")
                break
            except Exception as e:
                logger.error(f"Ratings poller error: {e}")

    def start(self) -> None:
        """Start polling in the background (requires a running loop)."""
        if not self.is_running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop polling."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
