"""Tests for optional bearer auth and the Redis helpers (client mocked)."""

import time
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest

from app.core import auth, redis as redis_helpers
from app.services.cache_maintenance import RedisHitCounter

SECRET = "test-jwt-secret-for-the-search-gateway"


def _token(**claims) -> str:
    body = {"sub": "user-123", "aud": "authenticated", "exp": int(time.time()) + 60}
    body.update(claims)
    return jwt.encode(body, SECRET, algorithm="HS256")


class TestOptionalUserId:
    @pytest.fixture(autouse=True)
    def _secret(self, monkeypatch):
        monkeypatch.setattr(auth.settings, "supabase_jwt_secret", SECRET)

    def test_valid_token_yields_subject(self) -> None:
        assert auth.decode_user_id(_token()) == "user-123"

    def test_expired_token_is_anonymous(self) -> None:
        assert auth.decode_user_id(_token(exp=int(time.time()) - 3600)) is None

    def test_wrong_audience_is_anonymous(self) -> None:
        assert auth.decode_user_id(_token(aud="service_role")) is None

    def test_garbage_is_anonymous(self) -> None:
        assert auth.decode_user_id("not-a-jwt") is None

    @pytest.mark.asyncio
    async def test_header_parsing(self) -> None:
        assert await auth.get_optional_user_id(f"Bearer {_token()}") == "user-123"
        assert await auth.get_optional_user_id(f"Basic {_token()}") is None
        assert await auth.get_optional_user_id(None) is None


def test_no_secret_configured_means_anonymous(monkeypatch) -> None:
    monkeypatch.setattr(auth.settings, "supabase_jwt_secret", "")
    assert auth.decode_user_id(_token()) is None


@pytest.fixture
def fake_redis(monkeypatch):
    client = MagicMock()
    client.hincrby = AsyncMock(return_value=1)
    client.publish = AsyncMock(return_value=2)

    async def _get_redis():
        return client

    monkeypatch.setattr(redis_helpers, "get_redis", _get_redis)
    return client


@pytest.mark.asyncio
async def test_hit_counter_records_into_hash(fake_redis) -> None:
    await RedisHitCounter(key="hits").record("search:jane:all:{}:20")

    fake_redis.hincrby.assert_awaited_once_with("hits", "search:jane:all:{}:20", 1)


@pytest.mark.asyncio
async def test_publish_json_serializes_message(fake_redis) -> None:
    receivers = await redis_helpers.publish_json("search-events", {"type": "x", "payload": {"q": "é"}})

    assert receivers == 2
    fake_redis.publish.assert_awaited_once_with("search-events", '{"type": "x", "payload": {"q": "é"}}')


@pytest.mark.asyncio
async def test_helpers_degrade_without_redis(monkeypatch) -> None:
    async def _no_redis():
        return None

    monkeypatch.setattr(redis_helpers, "get_redis", _no_redis)

    assert await redis_helpers.hash_increment("hits", "k") is False
    assert await redis_helpers.hash_drain("hits") == {}
    assert await redis_helpers.publish_json("search-events", {}) == 0


@pytest.mark.asyncio
async def test_helpers_swallow_redis_errors(fake_redis) -> None:
    fake_redis.hincrby.side_effect = ConnectionError("reset")

    assert await redis_helpers.hash_increment("hits", "k") is False
