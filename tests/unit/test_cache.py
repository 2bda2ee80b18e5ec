"""Unit tests for the token cache backends."""

from unittest.mock import Mock, patch

import pytest
import redis

from reepay_tokens.config import CacheSettings
from reepay_tokens.infrastructure.cache import (
    InMemoryTokenCache,
    RedisTokenCache,
    create_token_cache,
)


class TestInMemoryTokenCache:
    """Tests for the process-local LRU cache."""

    def test_get_set_delete(self):
        cache = InMemoryTokenCache()

        cache.set("ca_1", 1)
        assert cache.get("ca_1") == 1

        cache.delete("ca_1")
        assert cache.get("ca_1") is None

    def test_delete_missing_is_noop(self):
        InMemoryTokenCache().delete("ca_missing")

    def test_evicts_least_recently_used(self):
        cache = InMemoryTokenCache(max_entries=2)
        cache.set("ca_1", 1)
        cache.set("ca_2", 2)
        cache.get("ca_1")

        cache.set("ca_3", 3)

        assert len(cache) == 2
        assert cache.get("ca_2") is None
        assert cache.get("ca_1") == 1
        assert cache.get("ca_3") == 3

    def test_overwrite_keeps_single_entry(self):
        cache = InMemoryTokenCache()
        cache.set("ca_1", 1)
        cache.set("ca_1", 9)

        assert len(cache) == 1
        assert cache.get("ca_1") == 9

    def test_clear(self):
        cache = InMemoryTokenCache()
        cache.set("ca_1", 1)

        cache.clear()

        assert len(cache) == 0

    def test_rejects_non_positive_bound(self):
        with pytest.raises(ValueError):
            InMemoryTokenCache(max_entries=0)


class TestRedisTokenCache:
    """Tests for the Redis backend against a mocked client."""

    @pytest.fixture
    def client(self):
        return Mock(spec=redis.Redis)

    def test_keys_are_namespaced(self, client):
        cache = RedisTokenCache(client, namespace="shop1")

        cache.set("ca_1", 5)
        cache.delete("ca_1")

        client.set.assert_called_once_with("shop1:ca_1", 5, ex=None)
        client.delete.assert_called_once_with("shop1:ca_1")

    def test_ttl_is_applied(self, client):
        RedisTokenCache(client, ttl_seconds=3600).set("ca_1", 5)

        client.set.assert_called_once_with("reepay_tokens:ca_1", 5, ex=3600)

    def test_get_decodes_bytes(self, client):
        client.get.return_value = b"17"

        assert RedisTokenCache(client).get("ca_1") == 17
        client.get.assert_called_once_with("reepay_tokens:ca_1")

    def test_get_miss(self, client):
        client.get.return_value = None

        assert RedisTokenCache(client).get("ca_1") is None

    def test_errors_propagate(self, client):
        client.get.side_effect = redis.ConnectionError("down")

        with pytest.raises(redis.ConnectionError):
            RedisTokenCache(client).get("ca_1")


class TestCreateTokenCache:
    """Tests for backend selection."""

    def test_memory_backend(self):
        cache = create_token_cache(CacheSettings(backend="memory", max_entries=5))

        assert isinstance(cache, InMemoryTokenCache)
        assert cache.max_entries == 5

    def test_redis_backend(self):
        settings = CacheSettings(
            backend="redis", redis_url="redis://cache:6379/2", namespace="rt", ttl_seconds=60
        )

        with patch("redis.Redis.from_url") as from_url:
            cache = create_token_cache(settings)

        from_url.assert_called_once_with("redis://cache:6379/2")
        assert isinstance(cache, RedisTokenCache)
        assert cache.client is from_url.return_value
        assert cache.namespace == "rt"
        assert cache.ttl_seconds == 60
