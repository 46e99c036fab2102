import asyncio
import json

import httpx
import pytest

from config.settings import Settings
from services.errors import RatingStoreError
from services.rating_store import SqliteRatingStore, SupabaseRatingStore, create_rating_store


def make_store(handler):
    return SupabaseRatingStore(
        url="https://example.supabase.co/",
        service_role_key="service-key",
        transport=httpx.MockTransport(handler),
    )


def test_get_reads_single_row():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["headers"] = request.headers
        return httpx.Response(200, json=[{"likes": 4, "dislikes": 2}])

    record = asyncio.run(make_store(handler).get("song1"))

    assert (record.likes, record.dislikes) == (4, 2)
    assert seen["url"].path == "/rest/v1/ratings"
    assert seen["url"].params["song_id"] == "eq.song1"
    assert seen["url"].params["select"] == "likes,dislikes"
    assert seen["headers"]["apikey"] == "service-key"
    assert seen["headers"]["authorization"] == "Bearer service-key"


def test_get_missing_row_returns_none():
    record = asyncio.run(make_store(lambda request: httpx.Response(200, json=[])).get("song1"))
    assert record is None


def test_increment_calls_atomic_rpc():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["prefer"] = request.headers.get("prefer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"likes": 1, "dislikes": 0}])

    record = asyncio.run(make_store(handler).increment("song1", 1, 0))

    assert record.likes == 1
    assert seen["path"] == "/rest/v1/rpc/increment_rating"
    assert seen["prefer"] == "return=representation"
    assert seen["body"] == {"p_song_id": "song1", "p_like_delta": 1, "p_dislike_delta": 0}


def test_increment_without_row_is_a_store_error():
    store = make_store(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(RatingStoreError):
        asyncio.run(store.increment("song1", 1, 0))


def test_http_error_is_a_store_error():
    store = make_store(lambda request: httpx.Response(503, json={"message": "database is down"}))
    with pytest.raises(RatingStoreError, match="database is down"):
        asyncio.run(store.get("song1"))


def test_transport_error_is_a_store_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RatingStoreError):
        asyncio.run(make_store(handler).increment("song1", 0, 1))


def test_missing_configuration_is_rejected():
    with pytest.raises(RatingStoreError):
        SupabaseRatingStore(url=None, service_role_key="key")
    with pytest.raises(RatingStoreError):
        SupabaseRatingStore(url="https://example.supabase.co", service_role_key="")


def test_factory_selects_backend(tmp_path):
    sqlite_store = create_rating_store(Settings(ratings_db_path=str(tmp_path / "r.db")))
    assert isinstance(sqlite_store, SqliteRatingStore)

    remote = create_rating_store(Settings(
        rating_backend="supabase",
        supabase_url="https://example.supabase.co",
        supabase_service_role_key="key",
    ))
    assert isinstance(remote, SupabaseRatingStore)
    assert remote.rest_base_url == "https://example.supabase.co/rest/v1"
