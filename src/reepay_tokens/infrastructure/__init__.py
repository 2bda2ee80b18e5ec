"""Infrastructure layer exports."""

from reepay_tokens.infrastructure.cache import (
    InMemoryTokenCache,
    RedisTokenCache,
    create_token_cache,
)
from reepay_tokens.infrastructure.repository import OrderRepository, TokenRepository

__all__ = [
    "TokenRepository",
    "OrderRepository",
    "InMemoryTokenCache",
    "RedisTokenCache",
    "create_token_cache",
]
