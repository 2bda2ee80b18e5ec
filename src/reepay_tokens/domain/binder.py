"""Associating tokens with orders."""

from typing import Any, Optional, Union

from reepay_tokens.domain.exceptions import (
    InvalidTokenError,
    PersistenceError,
    RemoteLookupError,
)
from reepay_tokens.domain.factory import TokenFactory
from reepay_tokens.domain.interfaces import (
    IOrderRepository,
    IReepayGateway,
    ITokenRepository,
)
from reepay_tokens.domain.order import (
    META_CARD_TYPE,
    META_MASKED_CARD,
    META_SOURCE,
    META_TOKEN,
    META_TOKEN_ID,
    META_TOKEN_PRIVATE,
    Order,
)
from reepay_tokens.domain.store import TokenStore
from reepay_tokens.domain.token import CardInfo, PaymentMethodToken
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)

TokenRef = Union[PaymentMethodToken, int, str]


def card_info_meta(payload: dict[str, Any]) -> dict[str, Any]:
    """Order metadata mirrored from a Reepay card-info payload.

    Masked card and card type are only written when Reepay returned them; the
    raw payload is always stored, even when empty.
    """
    values: dict[str, Any] = {}
    if payload.get("masked_card"):
        values[META_MASKED_CARD] = payload["masked_card"]
    if payload.get("card_type"):
        values[META_CARD_TYPE] = payload["card_type"]
    values[META_SOURCE] = payload
    return values


class TokenBinder:
    """Makes a token the single active payment token of an order.

    Concurrent binds on the same order are last-writer-wins: there is no
    compare-and-swap on the order's token slot.
    """

    def __init__(
        self,
        store: TokenStore,
        factory: TokenFactory,
        tokens: ITokenRepository,
        orders: IOrderRepository,
        gateway: IReepayGateway,
    ):
        self.store = store
        self.factory = factory
        self.tokens = tokens
        self.orders = orders
        self.gateway = gateway

    def bind(self, order: Order, token: TokenRef) -> None:
        """Assign a token to an order, replacing any previous association.

        Args:
            order: Order to bind to
            token: Persisted token, or its numeric local id

        Raises:
            InvalidTokenError: If token is neither a token nor a numeric id
            PersistenceError: If the order is not stored or a write fails
        """
        resolved = self._load(token)
        if resolved is None or not resolved.is_persisted:
            logger.debug("token_bind_skipped", order_id=order.id)
            return

        self.orders.clear_payment_tokens(order.id)

        # Work on the stored order, not the caller's snapshot
        current = self.orders.get(order.id)
        if current is None:
            logger.error("token_bind_order_missing", order_id=order.id, token_id=resolved.id)
            raise PersistenceError(f"Order {order.id} not found")

        self.orders.add_payment_token(current.id, resolved.id)
        self.orders.update_meta(
            current.id,
            {
                META_TOKEN_ID: resolved.id,
                META_TOKEN: resolved.token,
                META_TOKEN_PRIVATE: resolved.token,
            },
        )

        logger.info(
            "token_bound",
            order_id=current.id,
            token_id=resolved.id,
            token=resolved.token,
        )

    def save_token_for_order(self, order: Order, raw_token: str) -> PaymentMethodToken:
        """Get-or-create the token for a string and bind it to the order.

        Raises:
            RemoteLookupError: If a new token is needed and card info lookup fails
            CardNotFoundError: If a new token is needed and Reepay has no card
            PersistenceError: If a new token cannot be stored
        """
        token = self.store.resolve(raw_token)

        if token is not None:
            self.bind(order, token)
            return token

        return self.add_payment_token_to_order(order, raw_token)

    def add_payment_token_to_order(
        self, order: Order, raw_token: str
    ) -> PaymentMethodToken:
        """Create a token for the order's customer, mirror its card info and bind it."""
        token, card_info = self.factory.create_for_customer(order.customer_id, raw_token)
        self.store.remember(token)

        self.orders.update_meta(order.id, card_info_meta(card_info.raw))
        self.bind(order, token)
        return token

    def save_card_info(self, order: Order, raw_token: str) -> Optional[CardInfo]:
        """Fetch card info with the order's customer handle and mirror it onto the order.

        An empty or id-less payload is still stored as the order's card source.

        Returns:
            The parsed card info, or None when Reepay returned no payment method

        Raises:
            RemoteLookupError: If the card-info lookup fails
            PersistenceError: If the order is not stored or the write fails
        """
        customer_handle = self.gateway.get_customer_handle_by_order(order)

        try:
            payload = self.gateway.get_card_info(customer_handle, raw_token)
        except RemoteLookupError as e:
            logger.error(
                "card_info_lookup_failed",
                order_id=order.id,
                token=raw_token,
                error=e.message,
            )
            raise

        payload = payload or {}
        self.orders.update_meta(order.id, card_info_meta(payload))

        if not payload.get("id"):
            logger.warning("card_info_empty", order_id=order.id, token=raw_token)
            return None
        return CardInfo.from_dict(payload)

    def _load(self, token: TokenRef):
        if isinstance(token, PaymentMethodToken):
            return token

        if isinstance(token, bool):
            raise InvalidTokenError("Invalid token parameter")

        if isinstance(token, int):
            return self.tokens.get(token)

        if isinstance(token, str) and token.strip().isdigit():
            return self.tokens.get(int(token))

        raise InvalidTokenError("Invalid token parameter")
