"""
Exceptions shared by the rating and catalog services.
"""


class RatingError(Exception):
    """Base exception for rating-related errors."""

    status_code = 500

    def __init__(self, message: str, user_message: str, code: str):
        super().__init__(message)
        self.user_message = user_message
        self.code = code


class InvalidSongIdError(RatingError):
    """Raised when a song id is missing or fails the id pattern."""

    status_code = 400

    def __init__(self, raw_value=None):
        super().__init__(
            f"Invalid song id: {raw_value!r}",
            "Missing or invalid songId",
            "INVALID_SONG_ID"
        )
        self.raw_value = raw_value


class RatingStoreError(RatingError):
    """Raised when the counter store cannot be read or updated."""

    def __init__(self, message: str):
        super().__init__(
            message,
            "Failed to update ratings",
            "STORE_UNAVAILABLE"
        )


class CatalogError(RatingError):
    """Raised when the song catalog cannot be read."""

    def __init__(self, message: str):
        super().__init__(
            message,
            "Failed to fetch songs",
            "CATALOG_UNAVAILABLE"
        )
