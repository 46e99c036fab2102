"""Services module for the Media Hub ratings service."""

from .errors import RatingError, InvalidSongIdError, RatingStoreError, CatalogError
from .rating_store import RatingStore, SqliteRatingStore, SupabaseRatingStore, create_rating_store
from .rating_service import RatingService, clamp_delta
from .catalog_service import CatalogService

__all__ = [
    "RatingError",
    "InvalidSongIdError",
    "RatingStoreError",
    "CatalogError",
    "RatingStore",
    "SqliteRatingStore",
    "SupabaseRatingStore",
    "create_rating_store",
    "RatingService",
    "clamp_delta",
    "CatalogService",
]
