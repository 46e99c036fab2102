"""
REST API routes for the ratings service.
"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import AliasChoices, BaseModel, Field

from services.errors import RatingError
from services.rating_service import RatingService
from services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------

class RatingDelta(BaseModel):
    """Request body for applying a vote change."""
    # Left untyped: ids are validated by the service, and out-of-range
    # or non-numeric deltas are clamped rather than rejected
    song_id: Any = Field(
        default=None,
        validation_alias=AliasChoices("songId", "song_id"),
    )
    like_delta: Any = Field(
        default=0,
        validation_alias=AliasChoices("likeDelta", "like_delta"),
    )
    dislike_delta: Any = Field(
        default=0,
        validation_alias=AliasChoices("dislikeDelta", "dislike_delta"),
    )


class RatingCounts(BaseModel):
    """Current counts for a song."""
    likes: int
    dislikes: int


class RatingUpdateResult(BaseModel):
    """Result of a vote change. Counts are null for a no-op."""
    ok: bool = True
    likes: Optional[int] = None
    dislikes: Optional[int] = None


async def _read_delta(request: Request) -> RatingDelta:
    """Parse the POST body. An absent, unparseable or non-object body reads as {}."""
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    return RatingDelta.model_validate(payload)


def _raise_http(error: RatingError) -> None:
    if error.status_code >= 500:
        logger.error(f"{error.code}: {error}")
    else:
        logger.info(f"{error.code}: {error}")
    raise HTTPException(status_code=error.status_code, detail=error.user_message)


# -------------------------------------------------------------------------
# Router Factory
# -------------------------------------------------------------------------

def create_router(
    rating_service: RatingService,
    catalog_service: Optional[CatalogService] = None,
) -> APIRouter:
    """
    Create the API router with all routes.

    Args:
        rating_service: Service holding the shared counters
        catalog_service: Optional song catalog

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/api")

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @router.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True, "backend": rating_service.backend_name}

    # -------------------------------------------------------------------------
    # Rating Endpoints
    # -------------------------------------------------------------------------

    @router.get("/ratings", response_model=RatingCounts)
    async def get_ratings(
        response: Response,
        song_id_camel: Optional[str] = Query(default=None, alias="songId"),
        song_id: Optional[str] = Query(default=None),
    ):
        """Get current like/dislike counts for a song."""
        response.headers["Cache-Control"] = "no-store"
        try:
            record = await rating_service.get_ratings(song_id_camel or song_id)
            return record.to_dict()
        except RatingError as e:
            _raise_http(e)
        except Exception as e:
            logger.error(f"Error getting ratings: {e}")
            raise HTTPException(status_code=500, detail="Server error")

    @router.post("/ratings", response_model=RatingUpdateResult)
    async def apply_rating_delta(request: Request, response: Response):
        """Apply a like/dislike change atomically."""
        response.headers["Cache-Control"] = "no-store"
        delta = await _read_delta(request)
        try:
            record = await rating_service.apply_delta(
                delta.song_id,
                delta.like_delta,
                delta.dislike_delta,
            )
            if record is None:
                return RatingUpdateResult()
            return RatingUpdateResult(likes=record.likes, dislikes=record.dislikes)
        except RatingError as e:
            _raise_http(e)
        except Exception as e:
            logger.error(f"Error applying rating delta: {e}")
            raise HTTPException(status_code=500, detail="Failed to update ratings")

    # -------------------------------------------------------------------------
    # Catalog Endpoints
    # -------------------------------------------------------------------------

    @router.get("/songs")
    async def list_songs():
        """List the song catalog."""
        if catalog_service is None:
            raise HTTPException(status_code=501, detail="Catalog not configured")
        try:
            songs = await catalog_service.list_songs()
            return {"songs": [song.to_dict() for song in songs]}
        except RatingError as e:
            _raise_http(e)

    return router
