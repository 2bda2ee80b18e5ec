"""Read-through lookup of local tokens by external token string."""

from typing import Optional

from reepay_tokens.domain.interfaces import ITokenCache, ITokenRepository
from reepay_tokens.domain.token import PaymentMethodToken
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


class TokenStore:
    """Cache-aside access to the authoritative token table.

    The cache maps external token strings to local ids and is only a
    projection of the table: every cache failure degrades to an authoritative
    read, and a cached id that no longer loads is dropped.
    """

    def __init__(self, repository: ITokenRepository, cache: ITokenCache):
        self.repository = repository
        self.cache = cache

    def resolve(self, token: str) -> Optional[PaymentMethodToken]:
        """Get the local token for an external token string.

        Args:
            token: External token string

        Returns:
            The local token, or None when no record exists
        """
        if not token:
            return None

        token_id = self._cache_get(token)
        if token_id is not None:
            record = self.repository.get(token_id)
            if record is not None and record.token == token:
                return record

            # Row deleted, or id reused by another token after a rollback
            logger.info(
                "token_cache_stale_entry",
                token=token,
                token_id=token_id,
                loaded_token=record.token if record is not None else None,
            )
            self.invalidate(token)

        token_id = self.repository.get_id_by_token(token)
        if token_id is None:
            logger.debug("token_not_found", token=token)
            return None

        record = self.repository.get(token_id)
        if record is not None:
            self._cache_set(token, token_id)
        return record

    def remember(self, token: PaymentMethodToken) -> None:
        """Populate the cache for a freshly persisted token."""
        if token.id is not None:
            self._cache_set(token.token, token.id)

    def invalidate(self, token: str) -> None:
        """Drop the cache entry for an external token string."""
        try:
            self.cache.delete(token)
        except Exception as e:
            logger.warning("token_cache_delete_failed", token=token, error=str(e))

    def _cache_get(self, token: str) -> Optional[int]:
        try:
            return self.cache.get(token)
        except Exception as e:
            logger.warning("token_cache_read_failed", token=token, error=str(e))
            return None

    def _cache_set(self, token: str, token_id: int) -> None:
        try:
            self.cache.set(token, token_id)
        except Exception as e:
            logger.warning(
                "token_cache_write_failed", token=token, token_id=token_id, error=str(e)
            )
