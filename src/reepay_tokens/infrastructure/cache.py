"""Token string -> local id cache backends.

The cache is a rebuildable projection of the payment_tokens table. Backends
may raise on failure; TokenStore treats every cache error as a miss.
"""

import threading
from collections import OrderedDict
from typing import Optional

import redis

from reepay_tokens.config import CacheSettings
from reepay_tokens.domain.interfaces import ITokenCache
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


class InMemoryTokenCache(ITokenCache):
    """Bounded, process-local LRU cache."""

    def __init__(self, max_entries: int = 10_000):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")

        self.max_entries = max_entries
        self._entries: OrderedDict[str, int] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, token: str) -> Optional[int]:
        with self._lock:
            token_id = self._entries.get(token)
            if token_id is not None:
                self._entries.move_to_end(token)
            return token_id

    def set(self, token: str, token_id: int) -> None:
        with self._lock:
            self._entries[token] = token_id
            self._entries.move_to_end(token)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def delete(self, token: str) -> None:
        with self._lock:
            self._entries.pop(token, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisTokenCache(ITokenCache):
    """Cache shared between processes, stored under ``{namespace}:{token}``."""

    def __init__(
        self,
        client: redis.Redis,
        namespace: str = "reepay_tokens",
        ttl_seconds: Optional[int] = None,
    ):
        self.client = client
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(
        cls, url: str, namespace: str = "reepay_tokens", ttl_seconds: Optional[int] = None
    ) -> "RedisTokenCache":
        return cls(redis.Redis.from_url(url), namespace=namespace, ttl_seconds=ttl_seconds)

    def _key(self, token: str) -> str:
        return f"{self.namespace}:{token}"

    def get(self, token: str) -> Optional[int]:
        value = self.client.get(self._key(token))
        if value is None:
            return None
        return int(value)

    def set(self, token: str, token_id: int) -> None:
        self.client.set(self._key(token), token_id, ex=self.ttl_seconds)

    def delete(self, token: str) -> None:
        self.client.delete(self._key(token))


def create_token_cache(cache_settings: CacheSettings) -> ITokenCache:
    """Build the cache backend selected in settings."""
    if cache_settings.backend == "redis":
        logger.info("token_cache_backend", backend="redis", namespace=cache_settings.namespace)
        return RedisTokenCache.from_url(
            cache_settings.redis_url,
            namespace=cache_settings.namespace,
            ttl_seconds=cache_settings.ttl_seconds,
        )

    logger.info("token_cache_backend", backend="memory", max_entries=cache_settings.max_entries)
    return InMemoryTokenCache(max_entries=cache_settings.max_entries)
