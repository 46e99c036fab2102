"""
Vote state and the vote transition table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class VoteState(str, Enum):
    """Which way, if any, the local actor voted on a song."""

    NONE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"

    @classmethod
    def parse(cls, value: Any) -> "VoteState":
        """Parse a stored value. Unknown values mean no vote."""
        if value == cls.LIKED.value:
            return cls.LIKED
        if value == cls.DISLIKED.value:
            return cls.DISLIKED
        return cls.NONE


class VoteType(str, Enum):
    """The vote button that was pressed."""

    LIKE = "like"
    DISLIKE = "dislike"

    @property
    def active_state(self) -> VoteState:
        """State held while this button is highlighted."""
        return VoteState.LIKED if self is VoteType.LIKE else VoteState.DISLIKED


@dataclass(frozen=True)
class VoteTransition:
    """Result of pressing a vote button."""

    new_state: VoteState
    like_delta: int
    dislike_delta: int

    @property
    def is_noop(self) -> bool:
        return self.like_delta == 0 and self.dislike_delta == 0


def transition(current: VoteState, pressed: VoteType) -> VoteTransition:
    """
    Compute the new vote state and counter deltas for a button press.

    Pressing the active button withdraws the vote. Pressing the other
    button moves the vote, so one counter goes down and the other up.

    Args:
        current: Vote held before the press
        pressed: Button that was pressed

    Returns:
        VoteTransition with the new state and both deltas
    """
    like_delta = 0
    dislike_delta = 0

    if current is pressed.active_state:
        if pressed is VoteType.LIKE:
            like_delta = -1
        else:
            dislike_delta = -1
        return VoteTransition(VoteState.NONE, like_delta, dislike_delta)

    # Withdraw the opposite vote first
    if current is VoteState.LIKED:
        like_delta = -1
    elif current is VoteState.DISLIKED:
        dislike_delta = -1

    if pressed is VoteType.LIKE:
        like_delta += 1
    else:
        dislike_delta += 1

    return VoteTransition(pressed.active_state, like_delta, dislike_delta)
