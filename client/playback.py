"""
Client playback coordination.

PlaybackController guarantees that at most one audio handle plays at a
time. SeekTracker owns the progress/time display for one handle.
"""

import logging
import math
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class AudioHandle(Protocol):
    """What the controllers need from an audio element."""

    paused: bool
    ended: bool
    current_time: float
    duration: float

    async def play(self) -> None:
        """Start playback. May raise if the environment blocks it."""

    def pause(self) -> None:
        """Pause playback."""


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def format_time(seconds: Any) -> str:
    """
    Format seconds as M:SS, or H:MM:SS past an hour.
    Returns --:-- for unknown or negative values.
    """
    value = _finite(seconds)
    if value is None or value < 0:
        return "--:--"

    total = int(value)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _has_duration(handle: AudioHandle) -> bool:
    duration = _finite(handle.duration)
    return duration is not None and duration > 0


class PlaybackController:
    """
    Owns the single "currently playing" handle.

    Card state changes are reported through ``on_state_change(handle,
    playing)``.
    """

    def __init__(self, on_state_change: Optional[Callable[[AudioHandle, bool], None]] = None):
        self.current: Optional[AudioHandle] = None
        self.on_state_change = on_state_change

    def _mark(self, handle: AudioHandle, playing: bool) -> None:
        if self.on_state_change:
            self.on_state_change(handle, playing)

    def is_playing(self, handle: AudioHandle) -> bool:
        return self.current is handle

    async def request_play(self, handle: AudioHandle) -> bool:
        """
        Play a handle, stopping whichever other handle is playing first.

        Returns:
            True if playback started. A blocked or failed start leaves the
            card not playing and is not an error.
        """
        previous = self.current
        if previous is not None and previous is not handle:
            self.current = None
            previous.pause()
            self._mark(previous, False)

        if _has_duration(handle) and handle.current_time >= handle.duration:
            handle.current_time = 0

        self.current = handle
        try:
            await handle.play()
        except Exception as e:
            logger.debug(f"Playback did not start: {e}")
            if self.current is handle:
                self.current = None
            self._mark(handle, False)
            return False

        if self.current is not handle:
            # Another play request took over while this one was starting
            handle.pause()
            self._mark(handle, False)
            return False

        self._mark(handle, True)
        return True

    def request_pause(self, handle: AudioHandle) -> None:
        """Pause a handle and release it if it was the current one."""
        handle.pause()
        if self.current is handle:
            self.current = None
        self._mark(handle, False)

    def on_ended(self, handle: AudioHandle) -> None:
        """Track finished: pause and rewind so the next play starts at 0."""
        self.request_pause(handle)
        handle.current_time = 0

    async def toggle(self, handle: AudioHandle) -> bool:
        """
        Play/pause button.

        Returns:
            True if the handle is playing afterwards
        """
        if handle.paused:
            return await self.request_play(handle)
        self.request_pause(handle)
        return False


class SeekTracker:
    """
    Progress state for one handle.

    While the user drags the seek control, playback time updates do not
    touch the displayed position. Releasing the control moves playback to
    the dragged position.
    """

    def __init__(self, handle: AudioHandle):
        self.handle = handle
        self.seeking = False
        self.position = 0.0
        self.max = 0.0
        self.on_duration_change()

    @property
    def current_label(self) -> str:
        return format_time(self.position)

    @property
    def remaining_label(self) -> str:
        if self.max <= 0:
            return "--:--"
        return f"-{format_time(max(0.0, self.max - self.position))}"

    def _playback_time(self) -> float:
        return _finite(self.handle.current_time) or 0.0

    def on_duration_change(self) -> None:
        """Metadata loaded or duration changed."""
        self.max = float(self.handle.duration) if _has_duration(self.handle) else 0.0
        if not self.seeking:
            self.position = self._playback_time() if self.max > 0 else 0.0

    def on_time_update(self) -> None:
        """Playback time advanced."""
        if self.seeking:
            return
        self.position = self._playback_time()

    def begin_seek(self) -> None:
        self.seeking = True

    def seek_input(self, value: Any) -> None:
        """
        The seek control moved.

        During a drag only the display follows. Outside a drag (keyboard,
        click) playback moves immediately.
        """
        target = _finite(value)
        if target is None:
            return
        if self.max > 0:
            target = min(max(0.0, target), self.max)

        self.position = target
        if not self.seeking:
            self.handle.current_time = target

    def end_seek(self) -> None:
        """Drag released: commit the position and resume time sync."""
        if not self.seeking:
            return
        self.seeking = False
        self.handle.current_time = self.position
        self.on_time_update()
