"""
HTTP client for the ratings API.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
import httpx

from models.song import Song

logger = logging.getLogger(__name__)


class RatingApiError(Exception):
    """Raised when a ratings request fails (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RatingCounts:
    """Counts returned by the API. None means the server sent null."""

    likes: Optional[int]
    dislikes: Optional[int]

    @classmethod
    def from_payload(cls, data: dict) -> "RatingCounts":
        def _count(value) -> Optional[int]:
            if value is None:
                return None
            try:
                return max(0, int(value))
            except (TypeError, ValueError, OverflowError) as e:
                raise RatingApiError(f"Malformed count in response: {value!r}") from e

        return cls(likes=_count(data.get("likes")), dislikes=_count(data.get("dislikes")))


class RatingApiClient:
    """Talks to ``/api/ratings`` on the media hub server."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: Server base URL, e.g. http://127.0.0.1:8000
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RatingApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _send(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RatingApiError(f"{method} {path} failed: {e}") from e

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}

        if response.status_code >= 400:
            detail = (data.get("detail") or data.get("error")) if isinstance(data, dict) else None
            raise RatingApiError(
                detail or f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        return data if isinstance(data, dict) else {}

    async def get_ratings(self, song_id: str) -> RatingCounts:
        """Fetch authoritative counts for a song."""
        data = await self._send("GET", "/api/ratings", params={"songId": song_id})
        counts = RatingCounts.from_payload(data)
        return RatingCounts(likes=counts.likes or 0, dislikes=counts.dislikes or 0)

    async def apply_delta(self, song_id: str, like_delta: int, dislike_delta: int) -> RatingCounts:
        """
        Submit a vote change.

        Returns:
            Updated counts (both None for a server-side no-op)
        """
        data = await self._send(
            "POST",
            "/api/ratings",
            json={"songId": song_id, "likeDelta": like_delta, "dislikeDelta": dislike_delta},
        )
        return RatingCounts.from_payload(data)

    async def list_songs(self) -> List[Song]:
        """Fetch the song catalog."""
        data = await self._send("GET", "/api/songs")
        records = data.get("songs") or []
        return [Song.from_dict(r) for r in records if isinstance(r, dict) and r.get("id")]
