import asyncio

import pytest

from services.rating_store import SqliteRatingStore
from services.rating_service import RatingService


@pytest.fixture
def store(tmp_path):
    store = SqliteRatingStore(str(tmp_path / "ratings.sqlite3"), timeout=30.0)
    asyncio.run(store.initialize())
    return store


@pytest.fixture
def service(store):
    return RatingService(store)
