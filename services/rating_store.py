"""
Shared counter stores.

Every store exposes one atomic primitive, ``increment``, which applies both
deltas and floors each counter at 0 in a single step on the storage side.
Nothing here reads a row and then writes it back.
"""

import asyncio
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import httpx

from models.rating import RatingRecord
from config.settings import Settings
from .errors import RatingStoreError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ratings (
    song_id TEXT PRIMARY KEY,
    likes INTEGER NOT NULL DEFAULT 0 CHECK (likes >= 0),
    dislikes INTEGER NOT NULL DEFAULT 0 CHECK (dislikes >= 0),
    updated_at TEXT NOT NULL
);
"""

# Single statement: the row is created or updated and returned atomically
INCREMENT_SQL = """
INSERT INTO ratings (song_id, likes, dislikes, updated_at)
VALUES (:song_id, MAX(0, :like_delta), MAX(0, :dislike_delta), :now)
ON CONFLICT(song_id) DO UPDATE SET
    likes = MAX(0, ratings.likes + :like_delta),
    dislikes = MAX(0, ratings.dislikes + :dislike_delta),
    updated_at = :now
RETURNING likes, dislikes
"""

SELECT_SQL = "SELECT likes, dislikes FROM ratings WHERE song_id = ? LIMIT 1"


class RatingStore:
    """Interface for like/dislike counter storage."""

    name = "base"

    async def initialize(self) -> None:
        """Prepare the store (create schema, check configuration)."""

    async def get(self, song_id: str) -> Optional[RatingRecord]:
        """Return the stored record, or None if the song has no record."""
        raise NotImplementedError

    async def increment(self, song_id: str, like_delta: int, dislike_delta: int) -> RatingRecord:
        """Atomically apply both deltas, flooring each counter at 0."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release store resources."""


# =============================================================================
# SQLite
# =============================================================================

class SqliteRatingStore(RatingStore):
    """
    Counter store backed by a local SQLite database.
    Each operation runs in a worker thread with its own connection.
    """

    name = "sqlite"

    def __init__(self, db_path: str, timeout: float = 10.0):
        """
        Initialize SQLite store.

        Args:
            db_path: Database file path
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        # Autocommit: each statement is its own transaction
        return sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )

    def _initialize_sync(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as db:
            existing_version = db.execute("PRAGMA user_version").fetchone()[0]
            if existing_version < SCHEMA_VERSION:
                db.execute("PRAGMA journal_mode=WAL")
                db.executescript(SCHEMA_SQL)
                db.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
                logger.info(f"Created ratings schema v{SCHEMA_VERSION} in {self.db_path}")

    def _get_sync(self, song_id: str) -> Optional[RatingRecord]:
        with closing(self._connect()) as db:
            row = db.execute(SELECT_SQL, (song_id,)).fetchone()
        if row is None:
            return None
        return RatingRecord(song_id=song_id, likes=row[0], dislikes=row[1])

    def _increment_sync(self, song_id: str, like_delta: int, dislike_delta: int) -> Optional[RatingRecord]:
        params = {
            "song_id": song_id,
            "like_delta": like_delta,
            "dislike_delta": dislike_delta,
            "now": datetime.now(timezone.utc).isoformat(),
        }
        with closing(self._connect()) as db:
            with closing(db.execute(INCREMENT_SQL, params)) as cursor:
                row = cursor.fetchone()
        if row is None:
            return None
        return RatingRecord(song_id=song_id, likes=row[0], dislikes=row[1])

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self._initialize_sync)
        except (sqlite3.Error, OSError) as e:
            raise RatingStoreError(f"Failed to initialize ratings database: {e}") from e

    async def get(self, song_id: str) -> Optional[RatingRecord]:
        try:
            return await asyncio.to_thread(self._get_sync, song_id)
        except (sqlite3.Error, OSError) as e:
            raise RatingStoreError(f"Failed to read ratings for {song_id}: {e}") from e

    async def increment(self, song_id: str, like_delta: int, dislike_delta: int) -> RatingRecord:
        try:
            record = await asyncio.to_thread(
                self._increment_sync, song_id, like_delta, dislike_delta
            )
        except (sqlite3.Error, OSError) as e:
            raise RatingStoreError(f"Failed to update ratings for {song_id}: {e}") from e

        if record is None:
            raise RatingStoreError(f"Increment returned no row for {song_id}")
        return record


# =============================================================================
# Supabase REST
# =============================================================================

class SupabaseRatingStore(RatingStore):
    """
    Counter store backed by a Supabase table.

    Increments go through the ``increment_rating`` SQL function, which
    performs the update server-side in one statement.
    """

    name = "supabase"

    def __init__(
        self,
        url: Optional[str],
        service_role_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Supabase store.

        Args:
            url: Supabase project URL
            service_role_key: Service role key (server-side only)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)

        Raises:
            RatingStoreError: URL or key is missing
        """
        if not url:
            raise RatingStoreError("Missing environment variable: SUPABASE_URL")
        if not service_role_key:
            raise RatingStoreError("Missing environment variable: SUPABASE_SERVICE_ROLE_KEY")

        self.rest_base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self._transport = transport
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs):
        """Send a REST request and return decoded JSON (or None)."""
        headers = {**self._headers, **kwargs.pop("headers", {})}

        try:
            async with httpx.AsyncClient(
                base_url=self.rest_base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise RatingStoreError(f"Supabase request failed: {e}") from e

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = None

        if response.status_code >= 400:
            message = None
            if isinstance(data, dict):
                message = data.get("message") or data.get("error")
            raise RatingStoreError(
                message or response.text or f"Supabase REST error ({response.status_code})"
            )

        return data

    async def get(self, song_id: str) -> Optional[RatingRecord]:
        rows = await self._request(
            "GET",
            "/ratings",
            params={
                "select": "likes,dislikes",
                "song_id": f"eq.{song_id}",
                "limit": "1",
            },
        )
        if not isinstance(rows, list) or not rows:
            return None

        row = rows[0]
        return RatingRecord(
            song_id=song_id,
            likes=row.get("likes") or 0,
            dislikes=row.get("dislikes") or 0,
        )

    async def increment(self, song_id: str, like_delta: int, dislike_delta: int) -> RatingRecord:
        rows = await self._request(
            "POST",
            "/rpc/increment_rating",
            headers={"Prefer": "return=representation"},
            json={
                "p_song_id": song_id,
                "p_like_delta": like_delta,
                "p_dislike_delta": dislike_delta,
            },
        )
        if not isinstance(rows, list) or not rows:
            raise RatingStoreError(f"increment_rating returned no row for {song_id}")

        row = rows[0]
        return RatingRecord(
            song_id=song_id,
            likes=row.get("likes") or 0,
            dislikes=row.get("dislikes") or 0,
        )


def create_rating_store(settings: Settings) -> RatingStore:
    """
    Build the store selected by ``settings.rating_backend``.

    Raises:
        RatingStoreError: The supabase backend is selected but not configured
    """
    if settings.rating_backend == "supabase":
        return SupabaseRatingStore(
            url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            timeout=settings.store_timeout_seconds,
        )

    return SqliteRatingStore(
        db_path=settings.ratings_db_path,
        timeout=settings.store_timeout_seconds,
    )
