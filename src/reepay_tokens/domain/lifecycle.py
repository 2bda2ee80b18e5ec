"""Deleting tokens and recognising Reepay tokens."""

from typing import Optional

from reepay_tokens.domain.exceptions import RemoteDeleteError
from reepay_tokens.domain.gateways import GatewayCatalog
from reepay_tokens.domain.interfaces import IReepayGateway, ITokenRepository
from reepay_tokens.domain.store import TokenStore
from reepay_tokens.domain.token import PaymentMethodToken
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


class TokenLifecycle:
    """Two-phase token deletion: Reepay first, then the local record.

    The local store may lag behind a remote delete (a crash between the two
    phases leaves a local record whose payment method is gone at Reepay) but
    is never ahead of it.
    """

    def __init__(
        self,
        store: TokenStore,
        repository: ITokenRepository,
        gateway: IReepayGateway,
        catalog: GatewayCatalog,
    ):
        self.store = store
        self.repository = repository
        self.gateway = gateway
        self.catalog = catalog

    def is_reepay_token(self, token: Optional[PaymentMethodToken]) -> bool:
        """Check whether a token belongs to one of the Reepay gateways."""
        if token is None:
            return False

        return token.gateway_id in self.catalog.reepay_gateway_ids()

    def delete(self, token: PaymentMethodToken) -> bool:
        """Delete a payment method at Reepay and then locally.

        Returns:
            True if both phases ran, False if the Reepay delete failed (the
            local record and cache entry are left untouched)

        Raises:
            PersistenceError: If the local delete fails after the remote one
        """
        try:
            self.gateway.delete_payment_method(token.token)
        except RemoteDeleteError as e:
            logger.warning(
                "token_remote_delete_failed",
                token=token.token,
                token_id=token.id,
                error=e.message,
                code=e.code,
            )
            return False

        if token.id is not None:
            self.repository.delete(token.id)
        self.store.invalidate(token.token)

        logger.info("token_deleted", token=token.token, token_id=token.id)
        return True
